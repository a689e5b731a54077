[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rinhapay"
version = "0.1.0"
description = "Small HTTP payment gateway that queues payments and forwards them to a default or fallback processor."
requires-python = ">=3.10"
dependencies = []
keywords = ["payments", "http", "gateway", "worker-pool", "circuit-breaker"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
rinhapay = "rinhapay.server:main"

[tool.hatch.build.targets.wheel]
packages = ["rinhapay"]

[tool.pytest.ini_options]
addopts = "-ra"
