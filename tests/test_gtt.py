import json

import pytest

from kiteclient.gtt import (
    GTT,
    GTTCondition,
    GTTOneCancelsOtherTrigger,
    GTTParams,
    GTTResponse,
    GTTSingleLegTrigger,
    GTTType,
    Trigger,
    TriggerParams,
    _gtt_form,
    _new_gtt,
)


def single_params(value):
    return GTTParams(
        tradingsymbol="INFY",
        exchange="NSE",
        last_price=800,
        transaction_type="BUY",
        trigger=GTTSingleLegTrigger(trigger_value=value, quantity=value, limit_price=value),
    )


def test_single_leg_trigger():
    trigger = GTTSingleLegTrigger(trigger_value=1, limit_price=2, quantity=3)
    assert trigger.trigger_values() == [1]
    assert trigger.limit_prices() == [2]
    assert trigger.quantities() == [3]
    assert trigger.type() is GTTType.SINGLE
    assert isinstance(trigger, Trigger)


def test_oco_trigger_orders_lower_first():
    trigger = GTTOneCancelsOtherTrigger(
        upper=TriggerParams(trigger_value=900, limit_price=905, quantity=2),
        lower=TriggerParams(trigger_value=700, limit_price=695, quantity=1),
    )
    assert trigger.trigger_values() == [700, 900]
    assert trigger.limit_prices() == [695, 905]
    assert trigger.quantities() == [1, 2]
    assert trigger.type().value == "two-leg"


def test_trigger_is_abstract():
    with pytest.raises(TypeError):
        Trigger()


def test_new_gtt_single_defaults_product():
    gtt = _new_gtt(single_params(1))
    assert gtt.type is GTTType.SINGLE
    assert gtt.condition == GTTCondition("NSE", "INFY", 800, [1])
    assert len(gtt.orders) == 1
    order = gtt.orders[0]
    assert order.product == "CNC"
    assert order.order_type == "LIMIT"
    assert order.transaction_type == "BUY"
    assert (order.quantity, order.price) == (1, 1)


def test_new_gtt_keeps_product_and_two_legs():
    params = GTTParams(
        tradingsymbol="INFY",
        exchange="NSE",
        last_price=800,
        transaction_type="SELL",
        product="MIS",
        trigger=GTTOneCancelsOtherTrigger(
            upper=TriggerParams(900, 901, 5), lower=TriggerParams(700, 699, 4)
        ),
    )
    gtt = _new_gtt(params)
    assert [o.price for o in gtt.orders] == [699, 901]
    assert [o.quantity for o in gtt.orders] == [4, 5]
    assert {o.product for o in gtt.orders} == {"MIS"}


def test_gtt_form_fields():
    form = _gtt_form(single_params(2))
    assert form["type"] == "single"
    assert json.loads(form["condition"]) == {
        "exchange": "NSE",
        "tradingsymbol": "INFY",
        "last_price": 800,
        "trigger_values": [2],
    }
    orders = json.loads(form["orders"])
    assert len(orders) == 1
    assert orders[0]["tradingsymbol"] == "INFY"
    assert orders[0]["price"] == 2


def test_gtt_from_dict():
    gtt = GTT.from_dict(
        {
            "id": 123,
            "user_id": "XX0000",
            "type": "two-leg",
            "created_at": "2019-09-12 13:25:16",
            "status": "active",
            "condition": {
                "exchange": "NSE",
                "tradingsymbol": "INFY",
                "last_price": 798,
                "trigger_values": [700, 900],
            },
            "orders": [{"tradingsymbol": "INFY", "price": 702, "quantity": 1}],
            "meta": {"rejection_reason": "none"},
        }
    )
    assert gtt.id == 123
    assert gtt.type is GTTType.OCO
    assert gtt.created_at.year == 2019
    assert gtt.condition.trigger_values == [700.0, 900.0]
    assert gtt.orders[0].price == 702.0
    assert gtt.meta.rejection_reason == "none"
    assert gtt.expires_at is None


def test_gtt_response():
    assert GTTResponse.from_dict({"trigger_id": 123}).trigger_id == 123
    assert GTTResponse.from_dict(None).trigger_id == 0


def test_condition_round_trip():
    cond = GTTCondition("NSE", "INFY", 800.0, [1.0, 2.0])
    assert GTTCondition.from_dict(cond.to_dict()) == cond