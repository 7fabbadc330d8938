import pytest

from hotelops_lib.storage.errors import ValidationError
from hotelops_lib.storage.validation import EntityRules, Validator, NonEmptyStr


def test_valid_records_pass():
    v = Validator()
    v.validate('dishes', {'name': 'Rice', 'price': 50})
    v.validate('dishes', {'name': 'Rice', 'price': 12.5, 'category': 'staple'})
    v.validate('orders', {'items': [{'dishId': 'd1', 'qty': 2}], 'tableId': 'T1', 'total': 0})
    v.validate('hotel_rooms', {'roomNumber': '101', 'status': 'cleaning'})
    v.validate('partner_accounts', {
        'name_cn': '合作方', 'name_en': 'Partner', 'contact_person': 'Li', 'phone': '123',
        'credit_limit': 1000, 'current_balance': 0,
    })


def test_missing_items_names_the_field():
    v = Validator()
    with pytest.raises(ValidationError) as ei:
        v.validate('orders', {'tableId': 'T1', 'total': 10})
    assert ei.value.entity_type == 'orders'
    assert ei.value.field == 'items'
    assert 'items' in str(ei.value)


def test_empty_items_rejected():
    with pytest.raises(ValidationError) as ei:
        Validator().validate('orders', {'items': [], 'tableId': 'T1', 'total': 10})
    assert ei.value.field == 'items'


@pytest.mark.parametrize('price', [-1, '50', True, None])
def test_dish_price_must_be_non_negative_number(price):
    with pytest.raises(ValidationError) as ei:
        Validator().validate('dishes', {'name': 'Rice', 'price': price})
    assert ei.value.field == 'price'


def test_expense_amount_must_be_positive():
    with pytest.raises(ValidationError) as ei:
        Validator().validate('expenses', {'amount': 0, 'category': 'food', 'description': 'veg'})
    assert ei.value.field == 'amount'


def test_room_status_enumeration():
    v = Validator()
    with pytest.raises(ValidationError) as ei:
        v.validate('ktv_rooms', {'name': 'Room A', 'status': 'cleaning'})
    assert ei.value.field == 'status'


def test_all_violations_are_collected():
    with pytest.raises(ValidationError) as ei:
        Validator().validate('inventory', {'name': '', 'quantity': -3})
    fields = {e['field'] for e in ei.value.errors}
    assert {'name', 'quantity', 'unit'} <= fields
    assert ei.value.to_dict()['error'] == 'validation_error'


def test_unregistered_type_passes_through():
    v = Validator()
    assert v.has_rules('system_settings') is False
    v.validate('system_settings', {'anything': True})


def test_non_mapping_rejected():
    with pytest.raises(ValidationError) as ei:
        Validator().validate('dishes', ['not', 'a', 'record'])
    assert ei.value.field == '__root__'


def test_register_rules_at_runtime():
    class PaymentMethodRules(EntityRules):
        name: NonEmptyStr

    v = Validator()
    v.register_rules('payment_methods', PaymentMethodRules)
    assert v.has_rules('payment_methods')
    assert 'payment_methods' in v.entity_types()
    with pytest.raises(ValidationError):
        v.validate('payment_methods', {'name': ''})
    v.validate('payment_methods', {'name': 'cash'})


def test_custom_rule_table_replaces_defaults():
    v = Validator(rules={})
    v.validate('orders', {})
    assert v.entity_types() == []
