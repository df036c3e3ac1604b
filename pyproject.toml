[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fichart"
version = "0.1.0"
description = "Portfolio management API with metric collection, alerting, health checks and a Prometheus-style metrics endpoint"
requires-python = ">=3.10"
keywords = [
    "portfolio",
    "investment",
    "monitoring",
    "metrics",
    "prometheus",
    "health-check",
    "wsgi",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
    "Topic :: System :: Monitoring",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
]
dependencies = [
    "werkzeug>=3.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
]

[project.scripts]
fichart-monitoring = "fichart.monitoring.metrics_server:main"
fichart-portfolio = "fichart.portfolio.server:main"

[tool.hatch.build.targets.wheel]
packages = ["fichart"]

[tool.hatch.build.targets.sdist]
include = [
    "fichart",
    "tests",
    "pyproject.toml",
]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
