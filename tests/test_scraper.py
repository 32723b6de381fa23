from __future__ import annotations

import httpx
import pytest
from bs4.builder import ParserRejectedMarkup

from app.schemas import SeriesStatus
from conftest import PAGE_URL, html_response, page_sequence, price_page
from services.errors import NetworkError, ParseError
from services.fetcher import PageFetcher, parse_document


def test_cycle_publishes_minimum_for_each_series(make_service) -> None:
    body = price_page(cash=["$3.499", "$3.201", "$3.80"], credit=["$3.45", "$3.39"])
    service = make_service(html_response(body))

    report = service.run_cycle()

    assert report.succeeded
    assert report.error is None
    assert service.store.snapshot() == {
        "oil_lowest_price_cash": 3.2,
        "oil_lowest_price_credit": 3.39,
    }
    assert [(o.series, o.status, o.price) for o in report.series] == [
        ("cash", SeriesStatus.ok, 3.2),
        ("credit", SeriesStatus.ok, 3.39),
    ]
    assert report.finished_at is not None
    assert isinstance(report.duration_ms, int)


def test_single_mode_publishes_one_gauge(make_service) -> None:
    service = make_service(html_response(price_page(cash=["$2.99"], credit=["$3.09"])), series_mode="single")

    service.run_cycle()

    assert service.store.snapshot() == {"oil_lowest_price": 2.99}


def test_failed_series_does_not_block_the_other(make_service) -> None:
    service = make_service(
        page_sequence(
            price_page(cash=["$3.10"], credit=["$3.40"]),
            price_page(cash=["$2.90"], credit=["Call"]),
        )
    )
    service.run_cycle()
    report = service.run_cycle()

    assert not report.succeeded
    outcomes = {outcome.series: outcome for outcome in report.series}
    assert outcomes["cash"].status is SeriesStatus.ok
    assert outcomes["credit"].status is SeriesStatus.failed
    assert outcomes["credit"].error is not None
    assert outcomes["credit"].error.kind == "parse"
    assert service.store.get("oil_lowest_price_cash") == 2.9
    assert service.store.get("oil_lowest_price_credit") == 3.4


def test_missing_table_keeps_previous_value(make_service) -> None:
    service = make_service(
        page_sequence(
            price_page(cash=["$3.10"], credit=["$3.40"]),
            price_page(cash=["$3.00"]),
        )
    )
    service.run_cycle()
    report = service.run_cycle()

    credit = [outcome for outcome in report.series if outcome.series == "credit"][0]
    assert credit.status is SeriesStatus.failed
    assert credit.error is not None and credit.error.kind == "not_found"
    assert service.store.snapshot() == {
        "oil_lowest_price_cash": 3.0,
        "oil_lowest_price_credit": 3.4,
    }


def test_first_cycle_failure_leaves_gauge_unset(make_service) -> None:
    service = make_service(html_response(price_page(cash=["$3.10"])))

    service.run_cycle()

    assert service.store.get("oil_lowest_price_cash") == 3.1
    assert service.store.get("oil_lowest_price_credit") is None
    assert "oil_lowest_price_credit" not in service.store.render().decode("utf-8")


@pytest.mark.parametrize("status_code", [404, 500, 503])
def test_non_200_status_aborts_the_cycle(make_service, status_code: int) -> None:
    service = make_service(html_response(price_page(cash=["$3.10"]), status_code=status_code))

    report = service.run_cycle()

    assert report.error is not None
    assert report.error.kind == "network"
    assert str(status_code) in report.error.message
    assert all(outcome.status is SeriesStatus.skipped for outcome in report.series)
    assert service.store.snapshot() == {}


def test_transport_error_aborts_the_cycle_and_keeps_values(make_service) -> None:
    body = price_page(cash=["$3.10"], credit=["$3.40"])
    calls = []

    def flaky(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) > 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, text=body)

    service = make_service(flaky)
    service.run_cycle()
    report = service.run_cycle()

    assert report.error is not None
    assert report.error.kind == "network"
    assert service.store.snapshot() == {
        "oil_lowest_price_cash": 3.1,
        "oil_lowest_price_credit": 3.4,
    }


def test_unexpected_extractor_error_is_contained(make_service) -> None:
    service = make_service(html_response(price_page(cash=["$3.10"], credit=["$3.40"])))

    class ExplodingExtractor:
        def extract_minimum_price(self, document, locator):
            if "paybycredit" in locator:
                raise RuntimeError("boom")
            return 3.1

    service.extractor = ExplodingExtractor()
    report = service.run_cycle()

    outcomes = {outcome.series: outcome for outcome in report.series}
    assert outcomes["cash"].status is SeriesStatus.ok
    assert outcomes["credit"].error is not None
    assert outcomes["credit"].error.kind == "internal"
    assert service.store.snapshot() == {"oil_lowest_price_cash": 3.1}


def test_fetcher_follows_redirects_and_sends_user_agent() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": PAGE_URL})
        return httpx.Response(200, text="<html><body>ok</body></html>")

    fetcher = PageFetcher(timeout=None, transport=httpx.MockTransport(handler))
    try:
        document = fetcher.fetch_document("https://oil.example.test/old")
    finally:
        fetcher.close()

    assert document.body is not None
    assert document.body.get_text() == "ok"
    assert [request.url.path for request in seen] == ["/old", "/prices"]
    assert seen[0].headers["User-Agent"].startswith("heating-oil-exporter/")


def test_fetcher_raises_network_error_with_status_code() -> None:
    fetcher = PageFetcher(transport=httpx.MockTransport(lambda request: httpx.Response(502)))
    try:
        with pytest.raises(NetworkError) as excinfo:
            fetcher.fetch(PAGE_URL)
    finally:
        fetcher.close()

    assert excinfo.value.status_code == 502


def test_fetcher_timeout_is_configurable() -> None:
    bounded = PageFetcher(timeout=2.5)
    unbounded = PageFetcher(timeout=None)
    try:
        assert bounded._client.timeout.read == 2.5
        assert unbounded._client.timeout.read is None
    finally:
        bounded.close()
        unbounded.close()


def test_parse_document_tolerates_malformed_markup() -> None:
    document = parse_document("<table class='paywithcash'><tr><td>$3.10")

    assert document.select_one("td") is not None


def test_rejected_markup_aborts_the_cycle(monkeypatch, make_service) -> None:
    def reject(markup, features):
        raise ParserRejectedMarkup("markup is not HTML")

    monkeypatch.setattr("services.fetcher.BeautifulSoup", reject)
    service = make_service(html_response(price_page(cash=["$3.10"])))

    with pytest.raises(ParseError):
        parse_document("<html>")
    report = service.run_cycle()

    assert report.error is not None
    assert report.error.kind == "parse"
    assert all(outcome.status is SeriesStatus.skipped for outcome in report.series)
    assert service.store.snapshot() == {}
