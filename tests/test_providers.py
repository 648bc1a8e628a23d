from __future__ import annotations

import asyncio

from conftest import FakeAvailability

from wheretowatch.models import Provider
from wheretowatch.providers import ProviderDirectory, resolve_names, suggest_names


CATALOG = [
    Provider(id=1, name="A"),
    Provider(id=3, name="C"),
    Provider(id=8, name="Netflix"),
    Provider(id=9, name="Amazon Prime Video"),
    Provider(id=337, name="Disney Plus"),
]


def test_resolve_reports_missing_names() -> None:
    resolution = resolve_names(["A", "B", "C"], CATALOG)

    assert [p.name for p in resolution.providers] == ["A", "C"]
    assert [p.id for p in resolution.providers] == [1, 3]
    assert resolution.unresolved == ["B"]


def test_resolve_keeps_configured_order() -> None:
    resolution = resolve_names(["Disney Plus", "Netflix", "A"], CATALOG)
    assert [p.id for p in resolution.providers] == [337, 8, 1]


def test_resolve_is_exact_and_case_sensitive() -> None:
    resolution = resolve_names(["netflix", "Netflix ", "Disney+"], CATALOG)

    assert resolution.providers == []
    assert resolution.unresolved == ["netflix", "Netflix ", "Disney+"]
    assert "Netflix" in resolution.suggestions["netflix"]


def test_resolve_deduplicates_by_id() -> None:
    catalog = CATALOG + [Provider(id=8, name="Netflix Basic")]
    resolution = resolve_names(["Netflix", "Netflix", "Netflix Basic"], catalog)
    assert resolution.providers == [Provider(id=8, name="Netflix")]


def test_suggest_names_falls_back_to_catalog_sample() -> None:
    names = [p.name for p in CATALOG]
    assert suggest_names("zzzzzzzzzzzz", names, limit=2) == ["A", "C"]


def test_directory_fetches_catalog_from_source(caplog) -> None:
    directory = ProviderDirectory(FakeAvailability(catalog=CATALOG))

    resolution = asyncio.run(directory.resolve(["Netflix", "Peacock"]))

    assert resolution.providers == [Provider(id=8, name="Netflix")]
    assert resolution.unresolved == ["Peacock"]
    assert "'Peacock' not found in catalog" in caplog.text
