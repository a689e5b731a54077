# rinhapay

rinhapay is a small HTTP payment gateway. A client posts a payment and gets `202 Accepted` straight away. Background worker threads then forward the payment to a *default* payment processor. If the default processor fails or is marked unhealthy, the payment goes to a *fallback* processor.

The package uses only the Python standard library and needs Python 3.10 or later.

## Installation

```
pip install .
```

## Running the server

```
rinhapay [--host HOST] [--port PORT]
```

By default the server binds to all addresses on port 8080. Two environment variables choose the processor endpoints. A variable that is unset or empty falls back to its default:

| Variable | Default |
| --- | --- |
| `DEFAULT_PROCESSOR_URL` | `http://processor-default:8080/process` |
| `FALLBACK_PROCESSOR_URL` | `http://processor-fallback:8080/process` |

`SIGINT` or `SIGTERM` stops the server. It stops accepting connections, then processes the payments still queued, and exits.

## Endpoints

| Path | Method | Response |
| --- | --- | --- |
| `/payments` | `POST` | `202` with `{"id": "req_<unix-time>_<n>", "message": "Payment queued for processing", "status": "accepted"}` |
| `/payments-summary` | `GET` | `200` with `{"total_payments": ..., "default_success": ..., "fallback_success": ..., "total_errors": ...}` |
| `/health` | any | `200` with body `ok` |

The responses for other cases are:

- Any other path returns `404`.
- The wrong method on `/payments` or `/payments-summary` returns `405`.
- A full queue returns `503 Service temporarily unavailable`.

### Payment payload

```json
{"amount": 1000, "type": "credit", "description": "optional, up to 255 characters"}
```

The server answers `400` in these cases:

- The body is not valid JSON.
- The body has unknown fields.
- A field has the wrong type. `amount` must be an integer and the other fields must be strings.
- `amount` is not positive.
- `type` is empty or missing.
- `description` is longer than 255 characters.

Field names match case-insensitively. A `null` value leaves the field at its default.

## How payments are processed

- The queue holds 20,000 payments by default (`rinhapay.worker.DEFAULT_QUEUE_SIZE`).
- The number of workers is four per CPU, with a maximum of 100 (`rinhapay.worker.default_worker_count()`).
- Each worker collects payments into batches. A batch is processed when it holds 10 payments or when 50 ms have passed, whichever comes first. A worker processes up to 5 payments of a batch at the same time.
- A payment is posted as JSON to the default processor, then to the fallback processor. Each request has a 0.3 s timeout. A processor that is marked unhealthy is skipped.
- A `2xx` answer counts as a success and marks the processor healthy.
- A connection error, a timeout, `429` or a `5xx` answer counts as a failure. After three failures in a row, the processor is marked unhealthy. Other `4xx` answers fail the attempt but do not count toward the health state.
- Every 10 seconds a health checker pings each unhealthy processor with a `GET` on its URL plus `/health`. A processor that answers `200` is marked healthy again.

## Using it as a library

```python
from rinhapay.payment import PaymentRequest
from rinhapay.processor import PaymentProcessor

processor = PaymentProcessor("http://localhost:9001/process", "http://localhost:9002/process")
result = processor.process_payment(PaymentRequest(amount=100, type="credit"))
print(result.success, result.processor_id, result.error)
print(processor.summary().to_dict())
```

These are the main parts of the package:

- `rinhapay.payment` holds `PaymentRequest` with `validate()`, `to_json()` and `from_json()`, plus `ValidationError`, `ProcessorResult` and `PaymentSummary`.
- `rinhapay.processor` holds `PaymentProcessor` and `ProcessorStatus`. `PaymentProcessor` has `process_payment()`, `summary()`, `check_processor_health()`, `health_checker()` and `ping_processor()`.
- `rinhapay.worker.WorkerPool` has `start()`, `submit()`, `queue_size()` and `stop()`.
- `rinhapay.handlers.PaymentHandler` joins a processor and a worker pool. Its `post_payments(method, body)` and `get_payments_summary(method)` return a `Response` with a status, a body and a content type.
- `rinhapay.server.make_server(handler, host, port)` builds a `ThreadingHTTPServer` around a handler.

## What it does not do

- Counters and queued payments are kept in memory only. They are lost when the process exits.
- A payment that fails at both processors is counted in `total_errors` and dropped. It is not retried.
- There is no way to look up a single payment by the `id` returned from `POST /payments`.

## Tests

```
pip install .[test]
pytest
```