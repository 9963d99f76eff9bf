"""Property-based tests using Hypothesis.

Covers invariants for retry configuration, reference parsing, flat-listing
assembly and adapter memoisation.
"""

from __future__ import annotations

import math
import string
from typing import Any

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from secretref.core.assembler import FlatEntry, assemble
from secretref.core.config.retry import RetryConfig
from secretref.core.errors import MalformedReferenceError
from secretref.core.reference import Reference, ReferenceParser, ReferenceSyntax, parse_reference
from secretref.core.resilience.retry import RetryExecutor
from tests.factories import make_registry

# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

_valid_retry = st.builds(
    RetryConfig,
    max_attempts=st.integers(min_value=1, max_value=100),
    initial_delay_seconds=st.floats(min_value=0.001, max_value=10.0),
    max_delay_seconds=st.floats(min_value=10.0, max_value=300.0),
    backoff_multiplier=st.floats(min_value=1.0, max_value=5.0),
)

_tag = st.from_regex(r"[a-z][a-z0-9]{0,11}", fullmatch=True)

_segment = st.text(
    alphabet=string.ascii_letters + string.digits + "_-.",
    min_size=1,
    max_size=12,
)

_location = st.lists(_segment, min_size=1, max_size=5).map("/".join)

_param_key = st.text(alphabet=string.ascii_lowercase + "_", min_size=1, max_size=10)

_param_value = st.text(alphabet=string.ascii_letters + string.digits + "-_./:=&? ", max_size=15)

_expression = st.lists(
    st.from_regex(r"[a-z_][a-z0-9_]{0,8}", fullmatch=True), min_size=1, max_size=3
).map(".".join)

_reference = st.builds(
    Reference,
    backend_tag=_tag,
    location=st.one_of(_location, _location.map(lambda loc: "/" + loc)),
    parameters=st.lists(st.tuples(_param_key, _param_value), max_size=4).map(tuple),
    expression=st.one_of(st.none(), _expression),
)

_tree: st.SearchStrategy[dict[str, Any]] = st.recursive(
    st.dictionaries(_segment, st.text(max_size=10), min_size=1, max_size=4),
    lambda children: st.dictionaries(
        _segment, st.one_of(st.text(max_size=10), children), min_size=1, max_size=4
    ),
    max_leaves=20,
)


def _flatten(root: str, tree: dict[str, Any]) -> list[FlatEntry]:
    entries: list[FlatEntry] = []
    for key, value in tree.items():
        path = f"{root}/{key}"
        if isinstance(value, dict):
            entries.extend(_flatten(path, value))
        else:
            entries.append(FlatEntry(path, value))
    return entries


# ---------------------------------------------------------------------------
# RetryConfig validation
# ---------------------------------------------------------------------------


class TestRetryConfigProperties:
    @given(config=_valid_retry)
    def test_valid_configs_always_succeed(self, config: RetryConfig) -> None:
        assert config.max_attempts >= 1
        assert config.initial_delay_seconds > 0
        assert config.max_delay_seconds >= config.initial_delay_seconds

    @given(max_attempts=st.integers(max_value=0))
    def test_non_positive_attempts_always_raise(self, max_attempts: int) -> None:
        with pytest.raises(ValueError, match="max_attempts"):
            RetryConfig(max_attempts=max_attempts)

    @given(multiplier=st.floats(max_value=0.99))
    def test_low_multiplier_always_raises(self, multiplier: float) -> None:
        assume(not math.isnan(multiplier))
        with pytest.raises(ValueError, match="backoff_multiplier"):
            RetryConfig(backoff_multiplier=multiplier)

    @given(config=_valid_retry, attempt=st.integers(min_value=0, max_value=20))
    def test_delay_bounded_by_max_plus_jitter(self, config: RetryConfig, attempt: int) -> None:
        executor = RetryExecutor(config, jitter_factor=0.25)
        delay = executor.calculate_delay(attempt)
        assert 0 <= delay <= config.max_delay_seconds * 1.25


# ---------------------------------------------------------------------------
# Reference parsing
# ---------------------------------------------------------------------------


class TestReferenceProperties:
    @given(ref=_reference)
    def test_reparse_is_identity(self, ref: Reference) -> None:
        assert parse_reference(ref.to_uri()) == ref

    @given(ref=_reference)
    def test_serialisation_is_idempotent(self, ref: Reference) -> None:
        once = parse_reference(ref.to_uri())
        twice = parse_reference(once.to_uri())
        assert once == twice
        assert once.to_uri() == twice.to_uri()

    @given(ref=_reference)
    def test_prefix_does_not_change_result(self, ref: Reference) -> None:
        assert parse_reference("ref+" + ref.to_uri()) == parse_reference(ref.to_uri())

    @given(ref=_reference, options=st.frozensets(_param_key, max_size=3))
    def test_reparse_with_backend_syntax(self, ref: Reference, options: frozenset[str]) -> None:
        parser = ReferenceParser({ref.backend_tag: ReferenceSyntax(options=options)})
        once = parser.parse(ref.to_uri())
        assert parser.parse(once.to_uri()) == once

    @given(text=st.text(alphabet=string.ascii_letters + string.digits + "/_-", max_size=30))
    def test_missing_separator_always_malformed(self, text: str) -> None:
        with pytest.raises(MalformedReferenceError):
            parse_reference(text)


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


class TestAssembleProperties:
    @given(tree=_tree)
    @settings(max_examples=50)
    def test_flatten_then_assemble_round_trips(self, tree: dict[str, Any]) -> None:
        assert assemble("/root", _flatten("/root", tree)) == tree

    @given(tree=_tree, data=st.data())
    @settings(max_examples=50)
    def test_order_independent(self, tree: dict[str, Any], data: st.DataObject) -> None:
        entries = _flatten("/root", tree)
        shuffled = data.draw(st.permutations(entries))
        assert assemble("/root", shuffled) == assemble("/root", entries)

    @given(tree=_tree, value=st.text(max_size=10))
    @settings(max_examples=50)
    def test_interior_values_are_dropped(self, tree: dict[str, Any], value: str) -> None:
        entries = _flatten("/root", tree)
        interior = [
            FlatEntry(f"/root/{key}", value) for key, child in tree.items() if isinstance(child, dict)
        ]
        assert assemble("/root", entries + interior) == tree


# ---------------------------------------------------------------------------
# Adapter memoisation
# ---------------------------------------------------------------------------


class TestRegistryProperties:
    @given(
        params=st.dictionaries(
            st.sampled_from(["region", "profile", "stage"]), _param_value, max_size=3
        ),
        data=st.data(),
    )
    def test_parameter_order_shares_adapter(self, params: dict[str, str], data: st.DataObject) -> None:
        registry, built = make_registry(options=("region", "profile", "stage"))
        items = list(params.items())
        shuffled = data.draw(st.permutations(items))

        assert registry.resolve("fake", items) is registry.resolve("fake", shuffled)
        assert len(built) == 1
