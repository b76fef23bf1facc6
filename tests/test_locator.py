"""Tests for chart reference parsing."""

import pytest

from chartrepo.core.errors import InvalidReferenceError
from chartrepo.domain.locator import ChartLocator, is_gcs_chart_reference


def test_parse_gs_reference():
    locator = ChartLocator.parse("gs://kubernetes-charts/stable/nginx-ingress-1.2.3.tgz")

    assert locator.bucket == "kubernetes-charts"
    assert locator.path == "stable"
    assert locator.name == "nginx-ingress"
    assert locator.version == "1.2.3"
    assert locator.archive_name == "nginx-ingress-1.2.3.tgz"
    assert locator.repo_url() == "gs://kubernetes-charts/stable"
    assert locator.long_url() == "gs://kubernetes-charts/stable/nginx-ingress-1.2.3.tgz"


def test_parse_https_reference():
    locator = ChartLocator.parse("https://storage.googleapis.com/charts/redis-0.1.0-rc.1.tgz")

    assert locator.bucket == "charts"
    assert locator.path == ""
    assert locator.name == "redis"
    assert locator.version == "0.1.0-rc.1"
    assert locator.long_url() == "gs://charts/redis-0.1.0-rc.1.tgz"


@pytest.mark.parametrize(
    "reference",
    [
        "",
        "nginx",
        "http://example.com/charts/nginx-1.0.0.tgz",
        "gs://bucket-only",
        "gs://bucket/nginx.tgz",
        "gs://bucket/nginx-1.0.0.tar",
    ],
)
def test_invalid_references(reference):
    with pytest.raises(InvalidReferenceError):
        ChartLocator.parse(reference)
    assert not is_gcs_chart_reference(reference)


def test_is_gcs_chart_reference():
    assert is_gcs_chart_reference("gs://charts/nginx-1.0.0.tgz")
