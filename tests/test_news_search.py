"""Tests for the Tavily-backed news search run inside the helper."""

from unittest.mock import Mock, patch

from tools import news_search

RESULTS = [
    {"title": "Clinware raises $5M", "url": "https://news.example/clinware", "content": "Seed round led by X."},
    {"title": "", "url": "https://news.example/other", "content": ""},
]


def test_missing_key(monkeypatch):
    monkeypatch.delenv("TAVILY_API_KEY", raising=False)
    assert news_search.search_news("Clinware") == "Error: TAVILY_API_KEY is not set."


@patch("tools.news_search.TavilySearch")
def test_formats_results(mock_search, monkeypatch):
    monkeypatch.setenv("TAVILY_API_KEY", "tvly-test")
    mock_search.return_value.invoke.return_value = {"results": RESULTS}

    text = news_search.search_news("Clinware funding")

    assert text.startswith("News results:")
    assert "1. Clinware raises $5M (https://news.example/clinware): Seed round led by X." in text
    assert "2. https://news.example/other (https://news.example/other)" in text
    mock_search.return_value.invoke.assert_called_once_with({"query": "Clinware funding"})
    assert mock_search.call_args.kwargs["topic"] == "news"


@patch("tools.news_search.TavilySearch")
def test_no_results_is_empty(mock_search, monkeypatch):
    monkeypatch.setenv("TAVILY_API_KEY", "tvly-test")
    mock_search.return_value.invoke.return_value = {"results": []}

    assert news_search.search_news("nothing") == ""


@patch("tools.news_search.requests.post")
@patch("tools.news_search.TavilySearch")
def test_falls_back_to_rest_api(mock_search, mock_post, monkeypatch):
    monkeypatch.setenv("TAVILY_API_KEY", "tvly-test")
    mock_search.return_value.invoke.side_effect = RuntimeError("wrapper broke")
    mock_post.return_value = Mock(json=Mock(return_value={"results": RESULTS[:1]}))

    text = news_search.search_news("Clinware", timeout=3)

    assert "Clinware raises $5M" in text
    payload = mock_post.call_args.kwargs["json"]
    assert payload["query"] == "Clinware"
    assert payload["topic"] == "news"
    assert mock_post.call_args.kwargs["timeout"] == 3


@patch("tools.news_search.requests.post", side_effect=ConnectionError("offline"))
@patch("tools.news_search.TavilySearch", side_effect=ValueError("bad key"))
def test_everything_failing_is_empty(mock_search, mock_post, monkeypatch):
    monkeypatch.setenv("TAVILY_API_KEY", "tvly-test")

    assert news_search.search_news("Clinware") == ""
