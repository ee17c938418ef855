"""Tests for the error taxonomy."""

from landingpage.errors import (
    ClusterConnectionError,
    ClusterError,
    ConfigurationError,
    FetchError,
    LandingPageError,
    error_message,
)


class TestErrors:
    """Tests for error messages recorded per cluster."""

    def test_hierarchy(self):
        assert issubclass(ConfigurationError, LandingPageError)
        assert issubclass(ClusterConnectionError, ClusterError)
        assert issubclass(FetchError, ClusterError)
        assert not issubclass(ClusterConnectionError, ConnectionError)

    def test_connection_error(self):
        error = ClusterConnectionError("foobar", "invalid kubeconfig: not a mapping")

        assert error.cluster == "foobar"
        assert str(error) == "foobar: invalid kubeconfig: not a mapping"
        assert error.describe() == "connection failed: invalid kubeconfig: not a mapping"

    def test_fetch_error(self):
        error = FetchError("foobar", "403 Forbidden")

        assert not error.timed_out
        assert error.describe() == "fetch failed: 403 Forbidden"

    def test_timeout(self):
        error = FetchError.timeout("foobar", 24.0)

        assert error.timed_out
        assert error.describe() == "timed out after 24s"

    def test_error_message(self):
        assert error_message(None) is None
        assert error_message(FetchError.timeout("foobar", 0.5)) == "timed out after 0.5s"
        assert error_message(ValueError("bad")) == "ValueError: bad"
