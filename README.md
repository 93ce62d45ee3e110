# kiteclient

Building blocks for talking to a stock-broking trading API from Python:

- `kiteclient.http` – `HTTPClient`, a keep-alive HTTP client that form-encodes
  parameters and unwraps the API's JSON envelopes (`read_envelope`)
- `kiteclient.errors` – `KiteError`, `new_error` and `get_error_name`
- `kiteclient.timeutil` – `parse_time` for the timestamp formats the API uses
- `kiteclient.orders` – `Order`, `Trade`, `OrderParams`, `OrderResponse`
- `kiteclient.gtt` – good-till-triggered orders: `GTT`, `GTTParams`,
  `GTTSingleLegTrigger`, `GTTOneCancelsOtherTrigger`, `GTTResponse`
- `kiteclient.market` – quotes, historical candles and the CSV instrument lists
- `kiteclient.alerts` – simple and ATO price alerts with baskets of orders
- `kiteclient.snaps` – `OHLC`, `DepthItem`, `Depth` and `Tick` records
- `kiteclient.packet` – decoder for the binary market feed
- `kiteclient.ticker` – `Ticker`, a WebSocket market-feed client with callbacks

## Installation

```
pip install kiteclient
```

To run the test suite:

```
pip install "kiteclient[test]"
pytest
```

## Making requests

`HTTPClient` sends parameters form-encoded (keys sorted, list values repeated): in
the body for `POST` and `PUT`, as the query string for `GET` and `DELETE`. The
default timeout is five seconds.

```python
from kiteclient.http import HTTPClient
from kiteclient.orders import Order

client = HTTPClient()
data = client.do_envelope(
    "GET",
    "https://api.example.com/orders",
    headers={"Authorization": "Bearer token"},
)
orders = [Order.from_dict(item) for item in data]
```

- `do(method, url, params, headers)` and `do_raw(method, url, body, headers)` return
  an `HTTPResponse` with `body`, `status_code` and `headers`.
- `do_envelope(...)` returns the `data` member of a success envelope.
- `do_json(...)` returns the whole body decoded as JSON.

A response with status 400 or above is raised as a `KiteError` carrying the
envelope's `error_type`, `message` and `data`. Transport failures are raised as
`NetworkException`, unreadable or non-JSON bodies as `DataException`.

## Errors

```python
from kiteclient.errors import KiteError, get_error_name, new_error

get_error_name(403)        # "TokenException"
get_error_name(400)        # "InputException"

err = new_error("OrderException", "Insufficient funds")
err.code                   # 400
str(err)                   # "Insufficient funds"
```

Unknown error types become `GeneralException` with status 500.

## Timestamps

`parse_time` accepts `YYYY-MM-DD`, `YYYY-MM-DD HH:MM:SS` (both read as Indian
Standard Time), `YYYY-MM-DDTHH:MM:SS+0530` and RFC 3339. It returns `None` for an
empty or `"null"` value and raises `ValueError` for anything else.

## Building request parameters

- `OrderParams(...).to_params()` – form fields for placing or modifying an order,
  leaving out empty values.
- `AlertParams(...).to_form()` – form fields for an alert; an ATO alert with a
  basket carries it as compact JSON. `delete_alert_params(*uuids)` gives the query
  pairs for deleting alerts and raises `ValueError` when no UUID is given.
- `quote_params(instruments)` and `historical_params(instrument_token, interval,
  from_date, to_date, continuous, oi)` – query parameters for market data.
- `GTTParams` describes a GTT order; its `trigger` is a `GTTSingleLegTrigger` or a
  `GTTOneCancelsOtherTrigger` and the product defaults to `CNC`.

Responses are read with the `from_dict` class methods (`Order`, `Trade`, `GTT`,
`Alert`, `AlertHistory`, `QuoteItem`, `QuoteOHLCItem`, `QuoteLTPItem`, ...).
`format_historical_data` turns candle rows into `HistoricalData`, and
`parse_instruments` / `parse_mf_instruments` read the CSV instrument lists; both
raise `KiteError` on malformed input.

## Decoding the market feed

```python
from kiteclient.packet import convert_price, parse_binary

convert_price(1, 157315)   # 1573.15

for tick in parse_binary(message_bytes):
    print(tick.instrument_token, tick.mode, tick.last_price)
```

`parse_packet` decodes one packet in `ltp`, `quote` or `full` mode (index packets
included) and raises `ValueError` for a length that matches no mode.

## Streaming with the ticker

```python
from kiteclient.packet import Mode
from kiteclient.ticker import Ticker

ticker = Ticker(api_key="placeholder", access_token="token")

def on_connect():
    ticker.subscribe([408065])
    ticker.set_mode(Mode.FULL, [408065])

ticker.on_connect = on_connect
ticker.on_tick = lambda tick: print(tick.last_price)
ticker.on_error = lambda exc: print("error:", exc)
ticker.serve()
```

Callbacks are plain attributes: `on_connect`, `on_error`, `on_close`,
`on_message`, `on_reconnect`, `on_no_reconnect`, `on_tick` and `on_order_update`.
`serve` blocks; it reconnects with exponential back-off (up to
`reconnect_max_delay` seconds, at least 5) for up to `reconnect_max_retries`
attempts, treats the connection as dead after `data_timeout` seconds without data,
and restores stored subscriptions with `resubscribe`. `stop` ends it, and `close`
asks the server to close the connection cleanly.

## What this package does not do

There is no ready-made API client object: no login or session handling, no
checksum generation, and no built-in endpoint addresses besides the alert paths in
`kiteclient.alerts` and the default feed URL. You pass full URLs and
authorization headers to `HTTPClient` yourself. Margins, portfolio, mutual-fund
and user-profile endpoints have no records here.