"""Unit tests for ListService against the in-memory engine and store."""
from __future__ import annotations

import asyncio
from typing import Any

import pytest

from users_search.application.listing import ListRequest, ListResult, ListService, SearchPage
from users_search.application.registry import IndexDescriptor, IndexRegistry
from users_search.config.settings import ListingSettings
from users_search.kernel.errors import (
    IndexNotRegisteredError,
    QueryExecutionError,
    ValidationError,
)
from users_search.testing.fakes import InMemoryMetadataStore, InMemorySearchEngine, tokenize

AUDIENCE = "*.localhost"
OTHER_AUDIENCE = "admin.localhost"
FIELDS = frozenset({"username", "firstName", "lastName", "age"})

PEOPLE: list[dict[str, Any]] = [
    {"username": "ann@gmail.org", "firstName": "Ann", "lastName": "Adams", "age": 25},
    {"username": "johnny@gmail.org", "firstName": "Johhny", "lastName": "Baker", "age": 31},
    {"username": "joe@yahoo.org", "firstName": "Joe", "lastName": "Clark", "age": 27},
    {"username": "ann@yahoo.org", "firstName": "Anna", "lastName": "Diaz", "age": 19},
    {"username": "kim@yahoo.org", "firstName": "Kim", "lastName": "Joe", "age": 44},
]


def _population() -> dict[str, dict[str, Any]]:
    users: dict[str, dict[str, Any]] = {}
    for n, person in enumerate(PEOPLE, start=1):
        users[f"u{n:02d}"] = dict(person)
    for n in range(10):
        attrs: dict[str, Any] = {
            "username": f"member{n}@example.com",
            "firstName": f"Member{n}",
            "lastName": "Smith",
        }
        if n % 2 == 0:
            attrs["age"] = 20 + n
        users[f"u{n + 6:02d}"] = attrs
    return users


USERS = _population()


def _service(
    sortable: frozenset[str] = frozenset({"username", "lastName", "age"}),
    batch_size: int = 3,
) -> tuple[ListService, InMemorySearchEngine, InMemoryMetadataStore]:
    engine = InMemorySearchEngine()
    store = InMemoryMetadataStore()
    # reverse insertion so engine tie order differs from identity order
    for identity in sorted(USERS, reverse=True):
        engine.add(AUDIENCE, identity, USERS[identity])
        store.put(identity, AUDIENCE, USERS[identity])
        store.put(identity, OTHER_AUDIENCE, {"roles": ["user"]})
    registry = IndexRegistry(
        [
            IndexDescriptor(
                AUDIENCE,
                "{ms-users}-localhost",
                indexed_fields=FIELDS,
                sortable_fields=sortable,
                numeric_fields={"age"},
            )
        ]
    )
    settings = ListingSettings(default_audience=OTHER_AUDIENCE, scan_batch_size=batch_size)
    return ListService(registry, engine, store, settings=settings), engine, store


def _list(service: ListService, **kwargs: Any) -> ListResult:
    kwargs.setdefault("audience", AUDIENCE)
    kwargs.setdefault("limit", 100)
    return asyncio.run(service.list(ListRequest(**kwargs)))


def _usernames(result: ListResult) -> list[str]:
    return [user.metadata[AUDIENCE]["username"] for user in result.users]


def _expected_order(field: str | None, ids: list[str] | None = None) -> list[str]:
    ids = list(USERS) if ids is None else ids
    if field is None:
        return sorted(ids)
    # users without the field come last
    return sorted(ids, key=lambda i: (field not in USERS[i], str(USERS[i].get(field, "")).lower(), i))


# ---------------------------------------------------------------------------
# Scenario
# ---------------------------------------------------------------------------


class TestListingScenario:
    def test_unknown_audience(self) -> None:
        service, _, _ = _service()
        with pytest.raises(IndexNotRegisteredError) as info:
            _list(service, audience="missing")
        assert "missing" in info.value.message

    def test_match_first_name(self) -> None:
        service, _, _ = _service()
        result = _list(service, criteria="firstName", filter={"firstName": {"match": "Johhny"}})
        assert _usernames(result) == ["johnny@gmail.org"]

    def test_exact_first_name(self) -> None:
        service, _, _ = _service()
        result = _list(service, criteria="firstName", filter={"firstName": "Johhny"})
        assert _usernames(result) == ["johnny@gmail.org"]

    def test_multi_field_match_sorted_by_username(self) -> None:
        service, _, _ = _service()
        result = _list(
            service,
            criteria="username",
            filter={"#multi": {"fields": ["firstName", "lastName"], "match": "Joe"}},
        )
        names = _usernames(result)
        assert names[:2] == ["joe@yahoo.org", "kim@yahoo.org"]
        assert names == sorted(names, key=str.lower)

    def test_quoted_value_matches_nothing(self) -> None:
        service, _, _ = _service()
        assert _list(service, filter={"username": {"eq": '"ann@gmail.org"'}}).users == ()
        assert _list(service, filter={"username": '"ann@gmail.org"'}).users == ()

    def test_single_token_username(self) -> None:
        service, _, _ = _service()
        result = _list(service, criteria="username", filter={"username": "yahoo"})
        names = _usernames(result)
        assert names == ["ann@yahoo.org", "joe@yahoo.org", "kim@yahoo.org"]
        for user in result.users:
            assert {"firstName", "lastName"} <= set(user.metadata[AUDIENCE])

    def test_two_token_value_matches_nothing(self) -> None:
        service, _, _ = _service()
        assert _list(service, filter={"username": "yahoo.org"}).users == ()

    def test_shared_token(self) -> None:
        service, _, _ = _service()
        assert len(_list(service, filter={"username": "org"}).users) == 5

    def test_eq_full_address_is_not_a_token(self) -> None:
        service, _, _ = _service()
        assert _list(service, filter={"username": {"eq": "kim@yahoo.org"}}).users == ()

    def test_ne_excludes_value(self) -> None:
        service, _, _ = _service()
        result = _list(service, criteria="username", filter={"username": {"ne": "gmail"}})
        names = _usernames(result)
        assert len(names) == len(USERS) - 2
        assert not any("gmail" in name for name in names)

    def test_broken_match_text_downgrades_to_empty(self) -> None:
        service, _, _ = _service()
        result = _list(service, filter={"username": {"match": 'johnny@gmail.org"'}})
        assert result.users == ()
        assert result.total == 0


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class TestListingProperties:
    def test_idempotent(self) -> None:
        service, _, _ = _service()
        request = {"criteria": "lastName", "filter": {"username": "org"}, "offset": 1, "limit": 3}
        assert _list(service, **request) == _list(service, **request)

    def test_single_token_property(self) -> None:
        service, _, _ = _service()
        for value in ("ann", "yahoo", "smith", "member3"):
            for field in ("username", "firstName", "lastName"):
                result = _list(service, filter={field: value})
                for user in result.users:
                    assert value in tokenize(user.metadata[AUDIENCE][field])

    def test_exists_and_isempty_partition(self) -> None:
        service, _, _ = _service()
        present = set(_list(service, filter={"age": {"exists": True}}).ids)
        absent = set(_list(service, filter={"age": {"isempty": True}}).ids)
        assert present.isdisjoint(absent)
        assert present | absent == set(USERS)
        assert absent == {i for i, u in USERS.items() if "age" not in u}

    def test_closed_range(self) -> None:
        service, _, _ = _service()
        result = _list(service, filter={"age": {"gte": 22, "lte": 31}})
        ages = [user.metadata[AUDIENCE]["age"] for user in result.users]
        assert ages and all(22 <= a <= 31 for a in ages)
        assert set(result.ids) == {i for i, u in USERS.items() if 22 <= u.get("age", -1) <= 31}

    def test_single_sided_ranges(self) -> None:
        service, _, _ = _service()
        low = set(_list(service, filter={"age": {"gte": 40}}).ids)
        high = set(_list(service, filter={"age": {"lte": 20}}).ids)
        assert low == {i for i, u in USERS.items() if u.get("age", -1) >= 40}
        assert high == {i for i, u in USERS.items() if "age" in u and u["age"] <= 20}

    def test_multi_is_union_of_single_field_matches(self) -> None:
        service, _, _ = _service()
        for text in ("Joe", "ann", "Mem", "Smi"):
            multi = set(_list(service, filter={"#multi": {"fields": ["firstName", "lastName"], "match": text}}).ids)
            first = set(_list(service, filter={"firstName": {"match": text}}).ids)
            last = set(_list(service, filter={"lastName": {"match": text}}).ids)
            assert multi == first | last

    @pytest.mark.parametrize("criteria", ["username", "lastName", "firstName", "age", None, "#"])
    def test_pagination_composes(self, criteria: str | None) -> None:
        service, _, _ = _service()
        for offset in (0, 2, 5):
            for limit in (1, 3, 4):
                a = _list(service, criteria=criteria, offset=offset, limit=limit)
                b = _list(service, criteria=criteria, offset=offset + limit, limit=limit)
                both = _list(service, criteria=criteria, offset=offset, limit=2 * limit)
                assert a.ids + b.ids == both.ids

    @pytest.mark.parametrize("criteria", ["username", "lastName", "firstName", "age"])
    def test_order_is_case_insensitive_with_identity_ties(self, criteria: str) -> None:
        service, _, _ = _service()
        assert _list(service, criteria=criteria).ids == _expected_order(criteria)

    def test_native_and_scan_paths_agree(self) -> None:
        native, native_engine, _ = _service(sortable=frozenset({"lastName"}))
        scan, scan_engine, _ = _service(sortable=frozenset())
        for offset, limit in ((0, 6), (4, 3), (5, 10)):
            assert (
                _list(native, criteria="lastName", offset=offset, limit=limit).ids
                == _list(scan, criteria="lastName", offset=offset, limit=limit).ids
            )
        assert all(call["sort_by"] == "lastName" for call in native_engine.calls)
        assert all(call["sort_by"] is None for call in scan_engine.calls)

    def test_numeric_sortable_field_is_scanned(self) -> None:
        # the engine would order ages by number and put users without an age last
        service, engine, _ = _service(sortable=frozenset({"age"}))
        for offset, limit in ((0, 3), (3, 3), (6, 6)):
            a = _list(service, criteria="age", offset=offset, limit=limit)
            b = _list(service, criteria="age", offset=offset + limit, limit=limit)
            both = _list(service, criteria="age", offset=offset, limit=2 * limit)
            assert a.ids + b.ids == both.ids
        assert all(call["sort_by"] is None for call in engine.calls)
        assert _list(service, criteria="age").ids == _expected_order("age")

    def test_native_path_reads_only_what_it_needs(self) -> None:
        service, engine, _ = _service(batch_size=100)
        _list(service, criteria="username", offset=0, limit=2)
        assert engine.calls[0]["limit"] == 3
        assert len(engine.calls) == 1


# ---------------------------------------------------------------------------
# Validation, hydration, failures
# ---------------------------------------------------------------------------


class TestListingValidation:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"offset": -1},
            {"limit": 0},
            {"limit": 1001},
            {"limit": True},
            {"offset": 1.5},
            {"criteria": ""},
        ],
    )
    def test_bad_window(self, kwargs: dict[str, Any]) -> None:
        service, _, _ = _service()
        with pytest.raises(ValidationError):
            _list(service, **kwargs)

    def test_limit_at_max_is_accepted(self) -> None:
        service, _, _ = _service()
        assert len(_list(service, limit=1000).users) == len(USERS)

    def test_sort_field_must_be_indexed(self) -> None:
        service, _, _ = _service()
        with pytest.raises(ValidationError, match="sort field is not indexed"):
            _list(service, criteria="nickname")

    def test_filter_field_must_be_indexed(self) -> None:
        service, _, _ = _service()
        with pytest.raises(ValidationError):
            _list(service, filter={"nickname": "x"})

    def test_identity_filter_allowed(self) -> None:
        service, _, _ = _service()
        assert _list(service, filter={"#": "u03"}).ids == ["u03"]

    def test_identity_given_twice_is_rejected(self) -> None:
        service, _, _ = _service()
        with pytest.raises(ValidationError, match="more than once"):
            _list(service, filter={"#": "u03", "id": "u03"})

    def test_validation_precedes_registry(self) -> None:
        service, _, _ = _service()
        with pytest.raises(ValidationError):
            _list(service, audience="missing", limit=0)


class TestListingHydration:
    def test_metadata_scoped_to_audience(self) -> None:
        service, _, store = _service()
        result = _list(service, filter={"#": "u01"})
        assert result.users[0].metadata == {AUDIENCE: USERS["u01"]}
        assert store.fetched == [("u01", (AUDIENCE,))]

    def test_default_audience_included_on_request(self) -> None:
        service, _, _ = _service()
        result = _list(service, filter={"#": "u01"}, include_default_audience=True)
        assert set(result.users[0].metadata) == {AUDIENCE, OTHER_AUDIENCE}
        assert result.users[0].metadata[OTHER_AUDIENCE] == {"roles": ["user"]}

    def test_empty_match_is_not_an_error(self) -> None:
        service, _, store = _service()
        result = _list(service, filter={"username": "nobody"})
        assert result.users == ()
        assert result.total == 0
        assert not result.has_more
        assert store.fetched == []

    def test_total_and_has_more(self) -> None:
        service, _, _ = _service()
        result = _list(service, criteria="username", offset=0, limit=4)
        assert result.total == len(USERS)
        assert len(result.users) == 4
        assert result.has_more


class _FailingEngine:
    def __init__(self, exc: Exception) -> None:
        self._exc = exc

    async def search(self, index, query, **kwargs):  # type: ignore[no-untyped-def]
        raise self._exc


class TestListingFailures:
    def _service_with(self, engine: Any) -> ListService:
        registry = IndexRegistry([IndexDescriptor(AUDIENCE, "idx", indexed_fields=FIELDS)])
        return ListService(registry, engine, InMemoryMetadataStore())

    def test_execution_error_downgraded(self) -> None:
        service = self._service_with(_FailingEngine(QueryExecutionError("idx", "Syntax error at offset 3")))
        result = _list(service, filter={"username": {"match": "x"}}, offset=2, limit=5)
        assert result == ListResult(users=(), total=0, offset=2, limit=5)

    def test_other_errors_propagate(self) -> None:
        service = self._service_with(_FailingEngine(RuntimeError("boom")))
        with pytest.raises(RuntimeError):
            _list(service)

    def test_unknown_audience_not_downgraded(self) -> None:
        service = self._service_with(_FailingEngine(QueryExecutionError("idx")))
        with pytest.raises(IndexNotRegisteredError):
            _list(service, audience="other")


class TestListRequest:
    def test_from_params(self) -> None:
        request = ListRequest.from_params(
            {"audience": AUDIENCE, "criteria": "username", "filter": {"username": "org"}, "public": True},
            default_limit=25,
        )
        assert request.limit == 25
        assert request.offset == 0
        assert request.include_default_audience
        assert dict(request.filter) == {"username": "org"}

    def test_from_params_requires_audience(self) -> None:
        with pytest.raises(ValidationError):
            ListRequest.from_params({"criteria": "username"})

    def test_from_params_rejects_non_mapping_filter(self) -> None:
        with pytest.raises(ValidationError):
            ListRequest.from_params({"audience": AUDIENCE, "filter": ["username"]})

    @pytest.mark.parametrize("bad", [[("username", "org")], "username=org", 42])
    def test_non_mapping_filter_is_validation_error(self, bad: object) -> None:
        with pytest.raises(ValidationError) as info:
            ListRequest(audience=AUDIENCE, filter=bad)  # type: ignore[arg-type]
        assert info.value.errors == [{"field": "filter", "reason": "must be an object"}]

    def test_missing_filter_is_empty(self) -> None:
        assert dict(ListRequest(audience=AUDIENCE, filter=None).filter) == {}  # type: ignore[arg-type]

    def test_filter_is_read_only(self) -> None:
        request = ListRequest(audience=AUDIENCE, filter={"a": "b"})
        with pytest.raises(TypeError):
            request.filter["c"] = "d"  # type: ignore[index]

    def test_result_to_dict(self) -> None:
        service, _, _ = _service()
        payload = _list(service, criteria="username", offset=2, limit=2).to_dict()
        assert payload["cursor"] == 4
        assert payload["page"] == 2
        assert payload["pages"] == 8
        assert payload["total"] == 15
        assert len(payload["users"]) == 2

    def test_search_page_is_plain_data(self) -> None:
        assert SearchPage(hits=(), total=0).total == 0
