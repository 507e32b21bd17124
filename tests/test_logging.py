import logging

import pytest

from shared.core.logging_config import SecurityFilter

def filtered(message):
    record = logging.LogRecord("shipsheet", logging.INFO, __file__, 1, message, None, None)
    SecurityFilter().filter(record)
    return record.msg

@pytest.mark.parametrize("message,expected", [
    ("login failed password=hunter2 for admin", "login failed password=***REDACTED*** for admin"),
    ("Authorization: Bearer eyJhbGciOi.abc.def", "Authorization: ***REDACTED***"),
    ("payload {'token': 'abc123'}", "payload {'token': '***REDACTED***'}"),
    ("api_key=k1, session=s2", "api_key=***REDACTED***, session=***REDACTED***"),
    ("refresh with access_token=xyz", "refresh with access_token=***REDACTED***"),
])
def test_secret_values_are_redacted(message, expected):
    assert filtered(message) == expected

def test_plain_messages_pass_through():
    assert filtered("Order updated") == "Order updated"
    assert filtered("tokens remaining: 3") == "tokens remaining: 3"
