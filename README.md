# fichart

fichart is a small investment back end made of two parts:

- **portfolio** — an HTTP API for creating portfolios and managing the
  weights of the assets they hold. The combined weight of a portfolio's
  assets can never go above 100.
- **monitoring** — building blocks for collecting metrics, raising alerts
  and running health checks, a registry that renders metrics in the
  Prometheus text format, and a small server for that registry.

## Installation

```
pip install .
```

To run the test suite as well:

```
pip install ".[test]"
pytest
```

## Running the services

The portfolio API listens on port 8080, or on the port named by the
`PORT` environment variable or the `--port` option:

```
fichart-portfolio
fichart-portfolio --port 9000
```

It stops on SIGINT or SIGTERM.

The monitoring server listens on port 8083 (again overridable with `PORT`
or `--port`) and answers `GET /metrics` in the Prometheus text format:

```
fichart-monitoring
```

It stops on SIGHUP, SIGINT, SIGTERM or SIGQUIT. Both commands give
in-flight requests up to 30 seconds to finish when stopping.

## Portfolio API

| Method | Path                                   | Action                         |
|--------|----------------------------------------|--------------------------------|
| POST   | `/portfolios`                          | create a portfolio             |
| GET    | `/portfolios?userId=<id>`              | list a user's portfolios       |
| GET    | `/portfolios/{id}`                     | fetch a portfolio              |
| PUT    | `/portfolios/{id}`                     | rename a portfolio             |
| DELETE | `/portfolios/{id}`                     | delete a portfolio             |
| POST   | `/portfolios/{id}/assets`              | add an asset with a weight     |
| PUT    | `/portfolios/{id}/assets/{assetId}`    | change an asset's weight       |
| DELETE | `/portfolios/{id}/assets/{assetId}`    | remove an asset                |
| GET    | `/users/{userId}/portfolios`           | list a user's portfolios       |

Create a portfolio with a body such as
`{"userId": "user-1", "name": "Retirement"}` (answered with 201), rename it
with `{"name": "..."}`, add an asset with
`{"assetId": "asset-1", "weight": 40}` and change a weight with
`{"weight": 25}`. Successful responses are JSON objects with `id`,
`userId`, `name`, `assets` (each with `assetId` and `weight`), `createdAt`
and `updatedAt`; deletions answer 204 with no body.

Errors are plain text: 400 for a body that is not valid JSON, for a
missing `userId` query parameter, or for a weight that would push the
total above 100; 404 for an unknown portfolio or an asset that is not in
the portfolio.

The API is a plain WSGI application. `fichart.portfolio.server.create_app`
wraps it with request logging, a 500 answer for unexpected exceptions and
a 60-second request timeout (answered with 503), and can be mounted in
any WSGI server:

```python
from fichart.portfolio.repository import MemoryPortfolioRepository
from fichart.portfolio.server import create_app

app = create_app(MemoryPortfolioRepository())
```

`fichart.portfolio.api.PortfolioApp` is the bare application without
those wrappers, and `portfolio_to_dict` gives the JSON shape of a
portfolio.

## Working with portfolios in code

```python
from fichart.portfolio.model import new_portfolio
from fichart.portfolio.repository import MemoryPortfolioRepository

repository = MemoryPortfolioRepository()
portfolio = new_portfolio("user-1", "Retirement")
portfolio.add_asset("asset-1", 40)
repository.save(portfolio)

found = repository.find_by_id(portfolio.id)
mine = repository.find_by_user_id("user-1")
```

Rule violations raise exceptions from `fichart.portfolio.errors`, all
subclasses of `PortfolioError`: `InvalidWeightError` when the total
weight would exceed 100, `AssetNotFoundError` when an asset is not in the
portfolio, `PortfolioNotFoundError` when the repository has no portfolio
with the id, and `PortfolioExistsError` when saving an id that is already
stored. Each carries an HTTP `status_code` and a short `code`.

## Monitoring building blocks

- `fichart.monitoring.metrics_domain` — `Value` (a reading with labels
  and a timestamp), `new_value`, `MetricKind`, `BaseMetric` and
  `SimpleMetric`.
- `fichart.monitoring.collectors` — `BaseCollector` and `SimpleCollector`
  buffer metrics and hand each batch to a publisher on `collect()`.
- `fichart.monitoring.events` — monitoring events and alerts
  (`Event`, `new_monitoring_event`, `Alert`, `AlertLevel`, `new_alert`).
- `fichart.monitoring.alerts` — `SimpleNotifier` forwards an alert to
  every registered handler (a failing handler does not stop the others)
  and then publishes an alert event.
- `fichart.monitoring.domain` — business metrics (`Metric`, `MetricValue`,
  `MetricType`) with validation, plus storage and repository contracts.
- `fichart.monitoring.collection` — adapters between the two metric
  models, `BaseMetricCollector` (calls `collect()` on an interval in a
  background thread) and `MetricCollectorManager` (runs a set of
  collectors and saves a metric to a repository after each round).
- `fichart.monitoring.github_actions` and
  `fichart.monitoring.github_metrics` — metrics describing workflow runs
  and repository statistics, with collectors that publish them.
- `fichart.monitoring.health` — `Checker` runs registered checks, reporting
  a check that raises as DOWN; `Results.is_healthy()` tells whether every
  check is UP; `SimpleChecker` reports a status set from outside.
- `fichart.monitoring.exporter` — `Exporter` turns metrics into
  `Counter`, `Gauge`, `Histogram` and `Summary` collectors held in a
  `Registry`, which `render()` writes in the Prometheus text format.

To serve your own metrics, feed an `Exporter` and mount its registry with
`fichart.monitoring.metrics_server.create_app`:

```python
from fichart.monitoring.exporter import Exporter
from fichart.monitoring.metrics_domain import BaseMetric, MetricKind, new_value
from fichart.monitoring.metrics_server import create_app

exporter = Exporter()
exporter.export([BaseMetric("jobs_done", MetricKind.COUNTER, new_value(3), "Finished jobs")])
app = create_app(exporter.registry)
```

## What it does not do

- Portfolios are kept only in memory; everything is lost when the
  process stops. There is no database-backed repository.
- The `fichart-monitoring` command serves an empty registry: nothing in
  the command collects or exports metrics into it, so `/metrics` has no
  samples until you build your own application with `create_app` as
  shown above.
- The GitHub metric types describe workflow runs and repository
  statistics that you supply; the package does not fetch anything from
  GitHub.