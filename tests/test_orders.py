import json
from datetime import datetime, timedelta, timezone

import pytest

from kiteclient.orders import Order, OrderParams, OrderResponse, Trade

ORDERS = [
    {
        "order_id": "100000000000000",
        "status": "CANCELLED",
        "variety": "regular",
        "exchange": "NSE",
        "tradingsymbol": "SBIN",
        "instrument_token": 779521,
        "order_timestamp": "2021-05-31 09:18:57",
        "exchange_timestamp": "2021-05-31 09:18:57",
        "exchange_update_timestamp": "2021-05-31 09:18:58",
        "modified": False,
        "tag": None,
        "quantity": 1,
    },
    {"order_id": "200000000000000", "variety": "regular", "modified": False},
    {"order_id": "300000000000000", "variety": "co", "modified": False},
    {
        "order_id": "400000000000000",
        "variety": "iceberg",
        "modified": False,
        "validity": "TTL",
        "validity_ttl": 2,
        "meta": {"iceberg": {"leg_quantity": 200, "total_quantity": 1000}},
    },
    {"order_id": "500000000000000", "tag": "connect test order1",
     "tags": ["connect test order1"]},
    {"order_id": "600000000000000", "tag": "connect test order2",
     "tags": ["connect test order2", "XXXXX"]},
    {"order_id": "700000000000000", "variety": "auction",
     "auction_number": "22", "modified": False},
    {"order_id": "800000000000000", "product": "MTF"},
]


@pytest.fixture
def orders():
    return [Order.from_dict(item) for item in ORDERS]


def test_orders_have_ids(orders):
    assert all(order.order_id for order in orders)


def test_tag_parsing(orders):
    assert orders[0].tag == ""
    assert orders[4].tag == "connect test order1"
    assert orders[5].tags == ["connect test order2", "XXXXX"]


def test_iceberg_and_ttl_order(orders):
    order = orders[3]
    assert order.variety == "iceberg"
    assert order.modified is False
    assert order.validity == "TTL"
    assert order.validity_ttl == 2
    assert order.meta["iceberg"]["leg_quantity"] == 200.0
    assert order.meta["iceberg"]["total_quantity"] == 1000.0


def test_auction_order(orders):
    assert orders[6].variety == "auction"
    assert orders[6].auction_number == "22"
    assert orders[6].modified is False


def test_mtf_order(orders):
    assert orders[7].product == "MTF"


def test_timestamps_are_ist(orders):
    ts = orders[0].exchange_timestamp
    assert ts.utcoffset() == timedelta(hours=5, minutes=30)
    assert (ts.year, ts.month, ts.day, ts.hour, ts.minute) == (2021, 5, 31, 9, 18)


def test_missing_fields_default(orders):
    assert orders[1].exchange_timestamp is None
    assert orders[1].meta is None
    assert orders[1].quantity == 0.0


def test_round_trip_keeps_timestamp(orders):
    original = orders[0]
    encoded = json.dumps(original.to_dict())
    restored = Order.from_dict(json.loads(encoded))
    assert restored.exchange_timestamp == original.exchange_timestamp
    assert restored == original


def test_to_dict_uses_api_keys(orders):
    data = orders[0].to_dict()
    assert data["tradingsymbol"] == "SBIN"
    assert data["instrument_token"] == 779521
    assert data["order_timestamp"].startswith("2021-05-31T09:18:57")


def test_trade_from_dict():
    trade = Trade.from_dict(
        {
            "trade_id": "10000000",
            "order_id": "200000000000000",
            "quantity": 1,
            "average_price": 420.65,
            "fill_timestamp": "2021-05-31T09:16:39+0530",
            "instrument_token": 779521,
        }
    )
    assert trade.trade_id == "10000000"
    assert trade.quantity == 1.0
    assert trade.average_price == 420.65
    assert trade.fill_timestamp == datetime(
        2021, 5, 31, 9, 16, 39, tzinfo=timezone(timedelta(hours=5, minutes=30))
    )


def test_order_params_full():
    params = OrderParams(
        exchange="test",
        tradingsymbol="test",
        validity="test",
        product="test",
        order_type="test",
        transaction_type="test",
        quantity=100,
        disclosed_quantity=100,
        price=100,
        trigger_price=100,
        squareoff=100,
        stoploss=100,
        trailing_stoploss=100,
        tag="test",
    ).to_params()
    assert params["quantity"] == "100"
    assert params["price"] == "100"
    assert params["tag"] == "test"
    assert "iceberg_legs" not in params
    assert "auction_number" not in params


def test_order_params_omits_empty_and_keeps_fractions():
    params = OrderParams(
        exchange="NSE", price=101.5, iceberg_legs=2, iceberg_quantity=500,
        auction_number="7359",
    ).to_params()
    assert params == {
        "exchange": "NSE",
        "price": "101.5",
        "iceberg_legs": "2",
        "iceberg_quantity": "500",
        "auction_number": "7359",
    }


def test_order_response():
    assert OrderResponse.from_dict({"order_id": "151220000000000"}).order_id == (
        "151220000000000"
    )
    assert OrderResponse.from_dict(None).order_id == ""