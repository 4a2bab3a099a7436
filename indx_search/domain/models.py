"""Pydantic models shared by the session, search and presentation layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Literal
from urllib.parse import quote, unquote

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator
from pydantic.alias_generators import to_camel

DEFAULT_BASE_URL = "https://api.indx.co/api/"
SEARCH_PATH = "Search/"
NO_TRUNCATION = -1

ProtocolVersion = Literal["3.2", "3.3"]


class _WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class CoverageSetup(_WireModel):
    """Coverage tuning for protocol v3.3."""

    min_word_size: int = Field(default=2, ge=0)
    levenshtein_max_word_size: int = Field(default=20, ge=0)
    cover_whole_query: bool = True
    cover_whole_words: bool = True
    cover_fuzzy_words: bool = True
    cover_joined_words: bool = True
    cover_prefix_suffix: bool = True


class LcsCoverageSetup(_WireModel):
    """LCS tolerance tuning for protocol v3.2.

    ``lcs_top_max_repetions`` keeps the server's spelling.
    """

    lcs_top_error_tolerance: int = Field(default=0, ge=0)
    lcs_top_max_repetions: int = Field(default=0, ge=0)
    lcs_error_tolerance: int = Field(default=0, ge=0)
    lcs_max_repetitions: int = Field(default=0, ge=0)
    lcs_bottom_error_tolerance: int = Field(default=0, ge=0)
    lcs_bottom_max_repetitions: int = Field(default=0, ge=0)
    lcs_word_min_word_size: int = Field(default=2, ge=0)
    lcs_word_lcs_error_tolerance: int = Field(default=0, ge=0)
    lcs_word_lcs_max_repetitions: int = Field(default=0, ge=0)
    coverage_min_word_hits_abs: int = Field(default=1, ge=0)
    coverage_min_word_hits_relative: int = Field(default=0, ge=0)
    coverage_q_limit_for_error_tolerance: int = Field(default=5, ge=0)
    coverage_lcs_error_tolerance_relativeq: float = Field(default=0.2, ge=0)


COVERAGE_SETUPS: dict[str, type[CoverageSetup] | type[LcsCoverageSetup]] = {
    "3.2": LcsCoverageSetup,
    "3.3": CoverageSetup,
}


class _SearchPayloadBase(_WireModel):
    key_exclude_filter: str | None = None
    key_include_filter: str | None = None
    log_prefix: str = ""
    max_number_of_records_to_return: int
    remove_duplicates: bool
    time_out_limit_milliseconds: int
    number_of_records_for_applied_algorithm: int


class LcsSearchPayload(_SearchPayloadBase):
    """Request body for ``POST Search/{heap}`` (v3.2)."""

    algorithm: int
    sought_text: str
    coverage_setup: LcsCoverageSetup


class SearchPayload(_SearchPayloadBase):
    """Request body for ``POST Search/{dataset}`` (v3.3)."""

    apply_coverage: bool
    query_text: str
    coverage_setup: CoverageSetup


class ViewOptions(BaseModel):
    """Client-side display options that never cross the wire."""

    model_config = ConfigDict(frozen=True)

    metric_score_min: int = Field(default=30, ge=0, le=255)
    do_truncate: bool = True
    show_meta: bool = False


class SearchRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    sequence: int = 0
    query_text: str
    url: str
    headers: dict[str, str]
    body: dict[str, Any]
    view: ViewOptions = Field(default_factory=ViewOptions)


class QueryConfiguration(BaseModel):
    """Immutable per-request snapshot of everything a search depends on.

    Change it with :meth:`with_changes`, which returns a new value.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = DEFAULT_BASE_URL
    dataset: str = "0"
    protocol_version: ProtocolVersion = "3.3"
    results: int = Field(default=30, gt=0)
    apply_coverage: bool = True
    metric_score_min: int = Field(default=30, ge=0, le=255)
    do_truncate: bool = True
    show_meta: bool = False
    remove_duplicates: bool = True
    key_include_filter: str | None = None
    key_exclude_filter: str | None = None
    log_prefix: str = ""
    timeout_ms: int = Field(default=1000, gt=0)
    records_for_applied_algorithm: int = Field(default=1000, gt=0)
    coverage: CoverageSetup | LcsCoverageSetup | None = None

    @model_validator(mode="before")
    @classmethod
    def _coverage_for_version(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        version = data.get("protocol_version", "3.3")
        setup_cls = COVERAGE_SETUPS.get(version)
        if setup_cls is None:
            return data
        coverage = data.get("coverage")
        if coverage is None:
            coverage = setup_cls()
        elif isinstance(coverage, dict):
            coverage = setup_cls.model_validate(coverage)
        elif not isinstance(coverage, setup_cls):
            raise ValueError(
                f"protocol {version} expects {setup_cls.__name__}, "
                f"got {type(coverage).__name__}"
            )
        return {**data, "coverage": coverage}

    def with_changes(self, **changes: Any) -> QueryConfiguration:
        data = {name: getattr(self, name) for name in type(self).model_fields}
        version = changes.get("protocol_version", self.protocol_version)
        if version != self.protocol_version and "coverage" not in changes:
            data["coverage"] = None
        data.update(changes)
        return type(self).model_validate(data)

    def search_url(self) -> str:
        return f"{self.base_url}{SEARCH_PATH}{quote(self.dataset, safe='')}"

    def datasets_url(self) -> str:
        return f"{self.base_url}{SEARCH_PATH}datasets"

    def login_url(self) -> str:
        return f"{self.base_url}Login"

    def view_options(self) -> ViewOptions:
        return ViewOptions(
            metric_score_min=self.metric_score_min,
            do_truncate=self.do_truncate,
            show_meta=self.show_meta,
        )

    def to_payload(self, query_text: str) -> SearchPayload | LcsSearchPayload:
        common = {
            "key_exclude_filter": self.key_exclude_filter,
            "key_include_filter": self.key_include_filter,
            "log_prefix": self.log_prefix,
            "max_number_of_records_to_return": self.results,
            "remove_duplicates": self.remove_duplicates,
            "time_out_limit_milliseconds": self.timeout_ms,
            "number_of_records_for_applied_algorithm": self.records_for_applied_algorithm,
            "coverage_setup": self.coverage,
        }
        if self.protocol_version == "3.2":
            return LcsSearchPayload(
                algorithm=1 if self.apply_coverage else 0,
                sought_text=query_text,
                **common,
            )
        return SearchPayload(apply_coverage=self.apply_coverage, query_text=query_text, **common)

    @classmethod
    def from_request(cls, request: SearchRequest) -> QueryConfiguration:
        """Rebuild the configuration a request was built from."""

        base_url, marker, dataset = request.url.rpartition(SEARCH_PATH)
        if not marker:
            raise ValueError(f"Not a search URL: {request.url}")

        payload: SearchPayload | LcsSearchPayload
        if "queryText" in request.body:
            payload = SearchPayload.model_validate(request.body)
            version = "3.3"
            apply_coverage = payload.apply_coverage
        elif "soughtText" in request.body:
            payload = LcsSearchPayload.model_validate(request.body)
            version = "3.2"
            apply_coverage = payload.algorithm == 1
        else:
            raise ValueError("Request body carries neither queryText nor soughtText")

        return cls(
            base_url=base_url,
            dataset=unquote(dataset),
            protocol_version=version,
            results=payload.max_number_of_records_to_return,
            apply_coverage=apply_coverage,
            remove_duplicates=payload.remove_duplicates,
            key_include_filter=payload.key_include_filter,
            key_exclude_filter=payload.key_exclude_filter,
            log_prefix=payload.log_prefix,
            timeout_ms=payload.time_out_limit_milliseconds,
            records_for_applied_algorithm=payload.number_of_records_for_applied_algorithm,
            coverage=payload.coverage_setup,
            **request.view.model_dump(),
        )


class SearchRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    metric_score: int = Field(alias="metricScore", ge=0, le=255)
    text: str = Field(alias="documentTextToBeIndexed")
    document_key: str = Field(alias="documentKey")
    segment_number: int = Field(default=0, alias="segmentNumber")


class SearchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    search_records: list[SearchRecord] = Field(alias="searchRecords")
    coverage_bottom_index: int | None = Field(default=None, alias="coverageBottomIndex")


@dataclass(frozen=True, slots=True)
class ResultRow:
    rank: int
    record: SearchRecord
    last_confident: bool
    below_confidence: bool


@dataclass(frozen=True, slots=True)
class SearchResultView:
    """Processed records for one query, in server order.

    Truncation only annotates: rows after ``truncation_index`` are kept and
    flagged as below confidence.
    """

    query_text: str = ""
    records: tuple[SearchRecord, ...] = ()
    truncation_index: int = NO_TRUNCATION
    sequence: int = 0
    error: Exception | None = field(default=None, compare=False)

    @classmethod
    def empty(
        cls, query_text: str = "", sequence: int = 0, error: Exception | None = None
    ) -> SearchResultView:
        return cls(query_text=query_text, sequence=sequence, error=error)

    def __len__(self) -> int:
        return len(self.records)

    @property
    def truncated(self) -> bool:
        return self.truncation_index != NO_TRUNCATION

    def is_last_confident(self, index: int) -> bool:
        return self.truncated and index == self.truncation_index

    def is_below_confidence(self, index: int) -> bool:
        return self.truncated and index > self.truncation_index

    def rows(self) -> Iterator[ResultRow]:
        for index, record in enumerate(self.records):
            yield ResultRow(
                rank=index + 1,
                record=record,
                last_confident=self.is_last_confident(index),
                below_confidence=self.is_below_confidence(index),
            )


class AuthStatus(str, Enum):
    LOGGED_OUT = "logged_out"
    AUTHORIZING = "authorizing"
    AUTHORIZED = "authorized"
    UNAUTHORIZED = "unauthorized"
    BAD_REQUEST = "bad_request"
    FAILED = "failed"

    @property
    def message(self) -> str:
        return _STATUS_MESSAGES[self]


_STATUS_MESSAGES = {
    AuthStatus.LOGGED_OUT: "Not logged in",
    AuthStatus.AUTHORIZING: "Authorizing",
    AuthStatus.AUTHORIZED: "Authorized",
    AuthStatus.UNAUTHORIZED: "Unauthorized. Check credentials",
    AuthStatus.BAD_REQUEST: "Bad request",
    AuthStatus.FAILED: "Login failed",
}


@dataclass(frozen=True, slots=True)
class Session:
    """One authentication state. Replaced as a whole on every transition."""

    username: str = ""
    password: SecretStr | None = None
    status: AuthStatus = AuthStatus.LOGGED_OUT
    token: str = ""
    error: str | None = None

    @property
    def is_authorized(self) -> bool:
        return self.status is AuthStatus.AUTHORIZED and bool(self.token)

    @property
    def status_message(self) -> str:
        return self.status.message


__all__ = [
    "DEFAULT_BASE_URL",
    "NO_TRUNCATION",
    "AuthStatus",
    "CoverageSetup",
    "LcsCoverageSetup",
    "LcsSearchPayload",
    "ProtocolVersion",
    "QueryConfiguration",
    "ResultRow",
    "SearchPayload",
    "SearchRecord",
    "SearchRequest",
    "SearchResponse",
    "SearchResultView",
    "Session",
    "ViewOptions",
]
