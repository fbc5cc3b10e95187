from __future__ import annotations

import pytest

from core.navigation import RouteKind, classify_target, route_click


class FakeNavigator:
    def __init__(self, fail: bool = False) -> None:
        self.paths: list[str] = []
        self.urls: list[str] = []
        self.fail = fail

    def navigate(self, path: str) -> None:
        if self.fail:
            raise RuntimeError("no such route")
        self.paths.append(path)

    def open_external(self, url: str) -> None:
        self.urls.append(url)


ORIGIN = "https://app.herald.example"


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("/settings", (RouteKind.IN_APP, "/settings")),
        ("herald://backup", (RouteKind.IN_APP, "/backup")),
        ("https://app.herald.example/inbox?x=1#top", (RouteKind.IN_APP, "/inbox?x=1#top")),
        ("https://status.herald.example", (RouteKind.EXTERNAL, "https://status.herald.example")),
        ("http://app.herald.example/inbox", (RouteKind.EXTERNAL, "http://app.herald.example/inbox")),
    ],
)
def test_classify_target_with_origin(url: str, expected: tuple[RouteKind, str]) -> None:
    assert classify_target(url, origin=ORIGIN) == expected


def test_classify_target_rejects_unparsable() -> None:
    with pytest.raises(ValueError):
        classify_target("http://host:abc/")
    with pytest.raises(ValueError):
        classify_target("not a url")
    with pytest.raises(ValueError):
        classify_target("   ")


def test_protocol_relative_is_not_in_app() -> None:
    navigator = FakeNavigator()
    assert route_click("//evil.example/x", navigator) is RouteKind.EXTERNAL
    assert navigator.paths == []


def test_unparsable_target_falls_back_to_external(caplog) -> None:
    navigator = FakeNavigator()

    kind = route_click("http://host:abc/", navigator)

    assert kind is RouteKind.EXTERNAL
    assert navigator.urls == ["http://host:abc/"]
    assert "Failed to parse click target" in caplog.text


def test_navigator_errors_never_escape() -> None:
    navigator = FakeNavigator(fail=True)
    assert route_click("/missing", navigator) is RouteKind.IN_APP
