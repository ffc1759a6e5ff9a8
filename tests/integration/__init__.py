"""Integration tests for pykasacloud library.

These tests use real Kasa credentials from a .env file and make actual cloud
calls. They are marked with @pytest.mark.integration and skipped when the
credentials are missing.

To run integration tests:
    pytest tests/integration -v -m integration

Environment variables read from .env:
    KASA_USERNAME: Kasa account email
    KASA_PASSWORD: Kasa account password
    KASA_TEST_ALIAS: Alias of a plug that may be toggled (optional)
    KASA_API_BASE_URL: API base URL (optional, defaults to production)
"""
