from __future__ import annotations

from relay_providers.base.http import close_all_clients, get_httpx_client


def test_clients_are_pooled_per_base_url_and_purpose():
    try:
        a = get_httpx_client("https://api.replicate.com/v1", "replicate")
        b = get_httpx_client("https://api.replicate.com/v1", "replicate")
        c = get_httpx_client("https://api.replicate.com/v1", "other")
        assert a is b
        assert a is not c
    finally:
        close_all_clients()


def test_closed_client_is_recreated():
    try:
        a = get_httpx_client("https://example.invalid", "test")
        a.close()
        b = get_httpx_client("https://example.invalid", "test")
        assert b is not a and not b.is_closed
    finally:
        close_all_clients()
