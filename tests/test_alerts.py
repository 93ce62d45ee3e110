import json

import pytest

from kiteclient.alerts import (
    Alert,
    AlertHistory,
    AlertOperator,
    AlertOrderParams,
    AlertParams,
    AlertStatus,
    AlertType,
    Basket,
    BasketItem,
    OrderGTTParams,
    delete_alert_params,
)
from kiteclient.http import HTTPResponse, read_envelope

TEST_UUID = "550e8400-e29b-41d4-a716-446655440000"


def _alert_payload(rhs_constant=27000):
    return {
        "type": "simple",
        "user_id": "AB1234",
        "uuid": TEST_UUID,
        "name": "NIFTY 50",
        "status": "enabled",
        "disabled_reason": "",
        "lhs_attribute": "LastTradedPrice",
        "lhs_exchange": "INDICES",
        "lhs_tradingsymbol": "NIFTY 50",
        "operator": ">=",
        "rhs_type": "constant",
        "rhs_attribute": "",
        "rhs_exchange": "",
        "rhs_tradingsymbol": "",
        "rhs_constant": rhs_constant,
        "alert_count": 0,
        "created_at": "2025-06-12 08:56:04",
        "updated_at": "2025-06-12 08:56:04",
    }


def _envelope(data, status=200):
    body = json.dumps({"status": "success", "data": data}).encode()
    return HTTPResponse(body=body, status_code=status)


def _simple_params(rhs_constant):
    return AlertParams(
        name="NIFTY 50",
        type=AlertType.SIMPLE,
        lhs_exchange="INDICES",
        lhs_tradingsymbol="NIFTY 50",
        lhs_attribute="LastTradedPrice",
        operator=AlertOperator.GE,
        rhs_type="constant",
        rhs_constant=rhs_constant,
    )


def _basket():
    return Basket(
        name="basket",
        type="alert",
        tags=[],
        items=[
            BasketItem(
                type="",
                tradingsymbol="INFY",
                exchange="NSE",
                weight=0,
                params=AlertOrderParams(
                    transaction_type="BUY",
                    product="CNC",
                    order_type="LIMIT",
                    validity="DAY",
                    quantity=1,
                    price=1500.5,
                    variety="regular",
                ),
            )
        ],
    )


def test_create_alert_form_and_response():
    form = _simple_params(27000).to_form()
    assert form["rhs_constant"] == "27000"
    assert form["operator"] == ">="
    assert form["type"] == "simple"
    assert "basket" not in form

    alert = Alert.from_dict(read_envelope(_envelope(_alert_payload())))
    assert alert.name == "NIFTY 50"
    assert alert.lhs_exchange == "INDICES"
    assert alert.type is AlertType.SIMPLE
    assert alert.status is AlertStatus.ENABLED
    assert alert.operator is AlertOperator.GE
    assert alert.created_at.year == 2025


def test_get_alerts_parses_list():
    data = read_envelope(_envelope([_alert_payload(), _alert_payload(100)]))
    alerts = [Alert.from_dict(item) for item in data]
    assert len(alerts) == 2
    assert alerts[0].uuid == TEST_UUID
    assert alerts[0].name == "NIFTY 50"


def test_get_alert_uuid():
    alert = Alert.from_dict(read_envelope(_envelope(_alert_payload())))
    assert alert.uuid == TEST_UUID
    assert alert.name == "NIFTY 50"


def test_modify_alert():
    form = _simple_params(27500).to_form()
    assert form["rhs_constant"] == "27500"
    alert = Alert.from_dict(read_envelope(_envelope(_alert_payload(27500))))
    assert alert.uuid == TEST_UUID
    assert alert.rhs_constant == 27500


def test_fractional_rhs_constant():
    assert _simple_params(27500.25).to_form()["rhs_constant"] == "27500.25"


def test_delete_alert_params():
    assert delete_alert_params(TEST_UUID) == [("uuid", TEST_UUID)]
    assert delete_alert_params("a", "b") == [("uuid", "a"), ("uuid", "b")]


def test_delete_alert_requires_uuid():
    with pytest.raises(ValueError, match="at least one uuid"):
        delete_alert_params()


def test_get_alert_history():
    payload = [
        {
            "uuid": TEST_UUID,
            "type": "simple",
            "meta": [
                {
                    "instrument_token": 256265,
                    "tradingsymbol": "NIFTY 50",
                    "last_price": 27050.5,
                    "ohlc": {"open": 1, "high": 2, "low": 0.5, "close": 1.5},
                    "volume": 10,
                }
            ],
            "condition": "LastTradedPrice(\"INDICES:NIFTY 50\") >= 27000",
            "created_at": "2025-06-12 09:00:00",
            "order_meta": None,
        }
    ]
    history = [AlertHistory.from_dict(h) for h in read_envelope(_envelope(payload))]
    assert len(history) == 1
    assert history[0].uuid == TEST_UUID
    assert history[0].type is AlertType.SIMPLE
    assert history[0].meta[0].instrument_token == 256265
    assert history[0].meta[0].ohlc.low == 0.5
    assert history[0].order_meta is None


def test_instrument_rhs_fields():
    params = AlertParams(
        name="pair",
        type=AlertType.SIMPLE,
        lhs_exchange="NSE",
        lhs_tradingsymbol="INFY",
        lhs_attribute="LastTradedPrice",
        operator=AlertOperator.LT,
        rhs_type="instrument",
        rhs_exchange="NSE",
        rhs_tradingsymbol="TCS",
        rhs_attribute="LastTradedPrice",
    )
    form = params.to_form()
    assert form["rhs_tradingsymbol"] == "TCS"
    assert form["rhs_exchange"] == "NSE"
    assert "rhs_constant" not in form


def test_ato_form_carries_basket_json():
    params = _simple_params(100)
    params.type = AlertType.ATO
    params.basket = _basket()
    form = params.to_form()
    basket = json.loads(form["basket"])
    assert basket["name"] == "basket"
    item = basket["items"][0]
    assert item["tradingsymbol"] == "INFY"
    assert "id" not in item and "instrument_token" not in item
    assert item["params"]["price"] == 1500.5
    assert "gtt" not in item["params"]
    assert '"trigger_price":0' in form["basket"]


def test_simple_alert_ignores_basket():
    params = _simple_params(100)
    params.basket = _basket()
    assert "basket" not in params.to_form()


def test_basket_round_trip():
    basket = _basket()
    basket.items[0].params.gtt = OrderGTTParams(target=2.0, stoploss=1.5)
    basket.items[0].id = 7
    restored = Basket.from_dict(json.loads(json.dumps(basket.to_dict())))
    assert restored == basket


def test_nil_tags_serialize_as_null():
    assert Basket(name="b").to_dict() == {
        "name": "b",
        "type": "",
        "tags": None,
        "items": None,
    }


def test_alert_with_basket_from_dict():
    payload = _alert_payload()
    payload["type"] = "ato"
    payload["basket"] = _basket().to_dict()
    alert = Alert.from_dict(payload)
    assert alert.type is AlertType.ATO
    assert alert.basket.items[0].params.quantity == 1


def test_error_envelope_raises():
    body = json.dumps(
        {"status": "error", "error_type": "InputException", "message": "bad"}
    ).encode()
    from kiteclient.errors import KiteError

    with pytest.raises(KiteError) as info:
        read_envelope(HTTPResponse(body=body, status_code=400))
    assert info.value.error_type == "InputException"