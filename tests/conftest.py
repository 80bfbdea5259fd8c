"""Shared fixtures."""

import pytest

from card_ledger_sync.models import Card, Provider


@pytest.fixture
def amex_card():
    return Card(
        id="acc_123",
        name="Amex Card",
        provider=Provider(id="amex", name="American Express"),
    )


@pytest.fixture
def visa_card():
    return Card(id="acc_456", name="Visa Card")
