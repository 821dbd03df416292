# tavola

The business core of a small restaurant system, covering three services:

- **menu** – dishes, categories and signed image links for dish pictures;
- **order** – orders with a fixed status lifecycle and the events each change emits;
- **notify** – a stub notifier that forwards every message to a single chat.

The services are written against small protocols (`DishRepository`,
`ImageStorage`, `OrderRepository`, `EventRepository`, `EventPublisher`,
`DishGetter`, `MessageBot`), so storage, messaging and chat back ends are
supplied by the caller.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Errors

`tavola.errors` defines `DomainError` and its subclasses `InternalError`,
`InvalidArgumentError`, `InvalidUUIDError`, `EmptyDishListError`,
`InvalidStatusError` and `InvalidStatusTransitionError`. Errors returned to
callers of the request handlers are `ApiError`, carrying a `StatusCode`.

## Orders

`tavola.order_domain` holds the order model. `new_order` builds an `Order`
from a mapping of `Dish` to quantity; the price is the sum of each dish price
times its quantity (`calculate_price`), and an empty mapping raises
`EmptyDishListError`.

The status moves forward one step at a time:

```
created -> process -> on_kitchen -> delivery -> delivered
```

using `Order.process`, `Order.send_to_kitchen`, `Order.start_delivery` and
`Order.complete`. `Order.decline` works from any status except `delivered`
and `declined`. A step taken from the wrong status raises
`InvalidStatusTransitionError`. Every step returns an `OrderEvent` (see
`new_order_event`) whose payload is compact JSON with the order id, number
(left out when zero), client id and new status; its `EventType` is
`created`, `changeStatus` or `finalize`.

`tavola.order_models` holds the records passed between layers:
`OrderToCreate`, `OrderItem`, `OrderCreated`, `OrderFilter`, `DishInfo`,
`StoredOrder` (built from a domain order by `stored_order_from_domain`) and
`StoredEvent` (`new_event`).

`tavola.order_service.OrderService`:

- `create` looks the dishes up through a `DishGetter`, builds the order
  (with the address `"any"`), saves it and returns an `OrderCreated`;
- `get_order` parses the id (a bad id raises `ValueError`) and reads the order;
- `list_orders` needs a repository with a `list_orders` method, otherwise
  `TypeError` is raised;
- `update_order_status` and `update_status` set the status and save it when
  the repository has an `update` method.

`EventService` saves events and publishes the unpublished ones through an
`EventPublisher`, marking each as published; `publish_unpublished_events`
stops at the first failure. `start_background_processing(stop_event)` runs
that every `process_timeout` seconds in a daemon thread until the
`threading.Event` is set, logging failures.

`tavola.order_api.OrderAPI` is the request-facing layer, taking and returning
plain mappings. `status_to_proto` and `status_from_proto` map between stored
status names and `OrderStatusCode`. `initiate_payment` and
`process_payment_callback` only record the request in memory for the order;
`get_order_history` returns those recorded events.

## Menu

`tavola.menu_models.new_dish` creates a `MenuDish` with a fresh id and both
timestamps set to now; `MenuDish.to_message` gives its wire form. Request
records are `CreateDishRequest`, `UpdateDishRequest`, `ListDishFilter` and
the category records `CreateCategoryRequest`, `UpdateCategoryRequest`,
`DeleteCategoryRequest`, `ListCategoriesRequest` and `Category`.

`tavola.menu_service.DishService` creates, reads, updates and lists dishes;
whenever a dish carries an image object key, it is replaced by a download
link from `ImageService`. `ImageService.create_url` returns an upload link
together with an object key under `uploads/`; both kinds of link are
rewritten to `http://localhost:9000`. A missing bucket or a storage failure
raises `InternalError`.

`tavola.menu_api.MenuAPI` turns service errors into `ApiError`:
`InternalError` becomes `INTERNAL`, anything else `INVALID_ARGUMENT`; a bad
dish id is reported as `INVALID_ARGUMENT`. `list_dishes` applies the
availability filter only together with a non-zero category.

`tavola.metrics.DishMetrics` keeps per-operation counters and duration
histograms in an in-memory, thread-safe `MetricsRegistry`.

## Interceptors

`tavola.interceptors` wraps request handlers: `chain(handler, *interceptors)`
runs the first interceptor outermost, with a `CallInfo` describing the call.
`logging_interceptor` logs requests, responses and failures;
`recovery_interceptor` turns unexpected exceptions into an `INTERNAL`
`ApiError`; `metrics_interceptor` times menu calls and records them through
`record_basic_metrics`.

## Notifications

`tavola.notify.StubSender` sends every message to one configured chat
through a `MessageBot`, formatted by `format_message` as
`Recipient_<recipient>_message:<message>`. `NotifyAPI.send` wraps it and
reports failures as an `INTERNAL` `ApiError`.

## Configuration

`tavola.config` reads a YAML (or JSON) file given by `--config` or the
`CONFIG_PATH` environment variable (`fetch_config_path`); environment
variables override values from the file, and defaults fill empty ones.
Durations use the `1h30m` / `5s` notation (`parse_duration`,
`format_duration`, both in seconds). `DatabaseConfig.url` builds the
database connection string, with the password URL-escaped.

- `load_menu_config` and `load_order_config` require a file that exists;
  otherwise `ConfigError` is raised.
- `load_notify_config` falls back to environment variables when no file is
  given or the file is missing.

## Health checks

`tavola.health.HealthApp` runs a set of check functions concurrently.
`check` returns `HTTPStatus.OK` when all of them succeed and
`HTTPStatus.INTERNAL_SERVER_ERROR` when any raises; `start` serves that
result over HTTP at `/healz` in a background thread and `stop` shuts the
server down.

## Command line

The `tavola` command loads a service's configuration and sets up its logging:

```
tavola menu --config menu.yaml
tavola order --config order.yaml
tavola notify --config notify.yaml
```

The `env` setting selects the log format and level, as done by
`setup_logger`: `local` and `dev` log at debug level, others at info. The
menu service accepts only `local`, `dev` and `prod`. Configuration errors
are printed and the command exits with status 1. The command then waits
until it receives SIGINT or SIGTERM and stops.

## What this package does not do

The command does not serve the menu, order or notification requests over
the network, and the package contains no database, object-storage, message
broker or chat bot client: these are supplied by the caller through the
protocols above. The only server the command starts is the `/healz` health
endpoint of the order service, with no checks attached. Metrics are kept in
memory and not exported.