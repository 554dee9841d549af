"""
Unit tests for cart parsing and transaction codes.
"""

import re
import pytest
from decimal import Decimal
from app.exceptions import ValidationError, NotFoundError
from app.services.transaction_service import (
    generate_transaction_code, _parse_items, _normalize_payment_method, _normalize_notes
)


class TestTransactionCode:

    def test_matches_legacy_pattern(self):
        assert re.match(r'TRX-\d+', generate_transaction_code())

    def test_prefix_is_configurable(self):
        assert generate_transaction_code('POS').startswith('POS-')

    def test_codes_do_not_collide_within_same_millisecond(self):
        codes = {generate_transaction_code() for _ in range(500)}
        assert len(codes) == 500


class TestParseItems:

    @pytest.mark.parametrize('items', [None, [], {}, 'abc', {'product_id': 1}])
    def test_empty_or_not_a_list(self, items):
        with pytest.raises(ValidationError, match='Transaction items are required'):
            _parse_items(items)

    @pytest.mark.parametrize('quantity', [0, -1, 1.5, True, None, 'two'])
    def test_rejects_bad_quantity(self, quantity):
        with pytest.raises(ValidationError, match='quantity'):
            _parse_items([{'product_id': 1, 'quantity': quantity, 'unit_price': 100}])

    def test_rejects_missing_product_id(self):
        with pytest.raises(ValidationError, match='product_id'):
            _parse_items([{'quantity': 1, 'unit_price': 100}])

    @pytest.mark.parametrize('price', [-1, 'abc', 'NaN', 'sNaN', False, 1e30, '10000000000'])
    def test_rejects_bad_price(self, price):
        with pytest.raises(ValidationError, match='unit_price'):
            _parse_items([{'product_id': 1, 'quantity': 1, 'unit_price': price}])

    def test_rejects_non_object_line(self):
        with pytest.raises(ValidationError, match='Item 1'):
            _parse_items([[1, 2]])

    def test_normalizes_numbers(self):
        lines = _parse_items([
            {'product_id': '3', 'quantity': 2.0, 'unit_price': 25000},
            {'product_id': 4, 'quantity': '1', 'unit_price': '1500.5'},
            {'product_id': 5, 'quantity': 1},
            {'product_id': 6, 'quantity': 1, 'unit_price': '9999999999.99'},
        ])

        assert lines == [
            {'product_id': 3, 'quantity': 2, 'unit_price': Decimal('25000.00')},
            {'product_id': 4, 'quantity': 1, 'unit_price': Decimal('1500.50')},
            {'product_id': 5, 'quantity': 1, 'unit_price': None},
            {'product_id': 6, 'quantity': 1, 'unit_price': Decimal('9999999999.99')},
        ]


class TestPaymentMethod:

    def test_defaults_to_cash(self):
        assert _normalize_payment_method(None) == 'cash'
        assert _normalize_payment_method('  ') == 'cash'

    def test_free_form_kept(self):
        assert _normalize_payment_method(' qris ') == 'qris'

    def test_rejects_non_string(self):
        with pytest.raises(ValidationError):
            _normalize_payment_method(12)

    def test_rejects_too_long(self):
        with pytest.raises(ValidationError, match='at most 30'):
            _normalize_payment_method('x' * 31)
        assert _normalize_payment_method('x' * 30) == 'x' * 30


class TestNotes:

    def test_none_and_blank(self):
        assert _normalize_notes(None) is None
        assert _normalize_notes('   ') is None

    def test_text_kept(self):
        assert _normalize_notes(' Counter 2 ') == 'Counter 2'

    @pytest.mark.parametrize('notes', [{'a': 1}, ['x'], 5, True])
    def test_rejects_non_string(self, notes):
        with pytest.raises(ValidationError, match='notes'):
            _normalize_notes(notes)


class TestIdBounds:

    def test_largest_id_accepted(self):
        assert _parse_items([{'product_id': 2**63 - 1, 'quantity': 1}])[0]['product_id'] == 2**63 - 1

    def test_id_beyond_column_range_is_not_found(self):
        with pytest.raises(NotFoundError, match=str(10**20)):
            _parse_items([{'product_id': 10**20, 'quantity': 1}])
