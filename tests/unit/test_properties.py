"""Property-based tests for criticdiff using Hypothesis.

These tests verify invariant properties of the diff, render, and normalize
stages.  They complement the example-based unit tests by exercising the
code with a wide range of randomly generated inputs.
"""

from __future__ import annotations

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from criticdiff.config import CriticDiffConfig
from criticdiff.config import EXISTING_TEXT_SENTINEL as S
from criticdiff.diff.lcs_matcher import lcs_match
from criticdiff.document.parser import DocumentParser
from criticdiff.document.serializer import MarkdownSerializer, plain_text
from criticdiff.edit_script import merge, validate
from criticdiff.errors import EditScriptAlternationError
from criticdiff.markup import accept_all, count_spans, normalize, reject_all, tokenize
from criticdiff.pipeline import CriticDiffPipeline

_parser = DocumentParser()
_serializer = MarkdownSerializer()
_pipeline = CriticDiffPipeline()
_word_pipeline = CriticDiffPipeline(CriticDiffConfig(text_granularity="word"))

# ---------------------------------------------------------------------------
# Reusable strategies
# ---------------------------------------------------------------------------

# Text built from markup-significant characters, to hit every scanner branch.
_markup_text_st = st.text(alphabet="{}+-~>#` \n\rab", max_size=80)

_word_st = st.text(alphabet="abcdefghij", min_size=1, max_size=6)

_sentence_st = st.lists(_word_st, min_size=1, max_size=6).map(lambda ws: " ".join(ws) + ".")

_task_list_st = st.lists(st.tuples(st.booleans(), _sentence_st), min_size=1, max_size=4).map(
    lambda items: "\n".join(f"- [{'x' if done else ' '}] {text}" for done, text in items)
)

_inline_math_st = st.tuples(_word_st, _word_st, _sentence_st).map(
    lambda t: f"{t[0]} ${t[1]}$ {t[2]}"
)

_block_math_st = _sentence_st.map(lambda text: f"$$\n{text}\n$$")


def _table(columns: int, rows: list[list[str]]) -> str:
    lines = [f"| {' | '.join(row[:columns])} |" for row in rows]
    lines.insert(1, "| " + " | ".join(["---"] * columns) + " |")
    return "\n".join(lines)


_table_st = st.integers(min_value=2, max_value=3).flatmap(
    lambda columns: st.lists(
        st.lists(_word_st, min_size=columns, max_size=columns), min_size=2, max_size=4,
    ).map(lambda rows: _table(columns, rows))
)

# ``{key}`` is replaced with a per-document footnote key.
_footnote_st = _sentence_st.map(lambda text: f"Ref[^{{key}}].\n\n[^{{key}}]: {text}")

_block_st = st.one_of(
    _sentence_st,
    st.tuples(st.integers(min_value=1, max_value=3), _sentence_st).map(
        lambda t: "#" * t[0] + " " + t[1]
    ),
    st.lists(_sentence_st, min_size=1, max_size=4).map(
        lambda items: "\n".join(f"- {item}" for item in items)
    ),
    _task_list_st,
    _inline_math_st,
    _block_math_st,
    _table_st,
    _footnote_st,
)


def _join_blocks(blocks: list[str]) -> str:
    # Separate lists with a paragraph so adjacent lists never merge.
    return "\n\nSep.\n\n".join(
        block.replace("{key}", f"n{index}") for index, block in enumerate(blocks)
    )


_document_st = st.lists(_block_st, max_size=6).map(_join_blocks)


def _blocks(text: str) -> list[tuple[str, str]]:
    return [(block.type, plain_text(block)) for block in _parser.parse(text).children]


# ---------------------------------------------------------------------------
# Normalizer
# ---------------------------------------------------------------------------


class TestNormalizeProperties:
    @given(text=_markup_text_st)
    @settings(max_examples=500)
    def test_idempotent_on_markup_alphabet(self, text):
        once = normalize(text)
        assert normalize(once) == once

    @given(text=st.text(max_size=200))
    def test_idempotent_on_any_text(self, text):
        once = normalize(text)
        assert normalize(once) == once

    @given(text=_markup_text_st)
    def test_span_count_preserved(self, text):
        assert count_spans(normalize(text)) == count_spans(text)

    @given(text=st.text(alphabet="ab \n#", max_size=60))
    def test_text_without_spans_only_gains_newlines(self, text):
        assert normalize(text).replace("\n", "") == text.replace("\n", "")


class TestTokenizeProperties:
    @given(text=_markup_text_st)
    def test_segments_reassemble_input(self, text):
        assert "".join(span.text for span in tokenize(text)) == text


# ---------------------------------------------------------------------------
# Differencer and renderer
# ---------------------------------------------------------------------------


class TestDiffProperties:
    @given(doc=_document_st)
    @settings(max_examples=50, suppress_health_check=[HealthCheck.too_slow])
    def test_no_op_diff(self, doc):
        result = _pipeline.annotate(doc, doc)
        assert result.unchanged
        assert count_spans(result.rendered) == 0
        assert result.rendered == _serializer.serialize(_parser.parse(doc))

    @given(old=_document_st, new=_document_st)
    @settings(max_examples=75, suppress_health_check=[HealthCheck.too_slow])
    def test_span_count_equals_changes(self, old, new):
        result = _pipeline.annotate(old, new)
        assert count_spans(result.text) == result.changes

    @given(old=_document_st, new=_document_st)
    @settings(max_examples=75, suppress_health_check=[HealthCheck.too_slow])
    def test_accept_and_reject_recover_documents(self, old, new):
        result = _pipeline.annotate(old, new)
        assert _blocks(accept_all(result.text)) == _blocks(new)
        assert _blocks(reject_all(result.text)) == _blocks(old)

    @given(old=_document_st, new=_document_st)
    @settings(max_examples=75, suppress_health_check=[HealthCheck.too_slow])
    def test_word_granularity_keeps_span_count_and_sides(self, old, new):
        result = _word_pipeline.annotate(old, new)
        assert count_spans(result.text) == result.changes
        assert _blocks(accept_all(result.text)) == _blocks(new)
        assert _blocks(reject_all(result.text)) == _blocks(old)

    @given(words=st.lists(_word_st, min_size=2, max_size=10), index=st.integers(min_value=0))
    @settings(max_examples=75)
    def test_one_replaced_word_gives_one_span(self, words, index):
        index %= len(words)
        edited = [*words]
        edited[index] = words[index] + "z"
        result = _word_pipeline.annotate(" ".join(words) + ".", " ".join(edited) + ".")
        assert result.changes == 1
        assert count_spans(result.text) == 1
        assert f"~>{edited[index]}~~}}" in result.text


class TestLcsProperties:
    @given(
        old=st.lists(st.integers(0, 4), max_size=12),
        new=st.lists(st.integers(0, 4), max_size=12),
    )
    def test_pairs_are_order_preserving_matches(self, old, new):
        pairs = lcs_match(len(old), len(new), lambda i, j: 1 if old[i] == new[j] else 0)
        for i, j in pairs:
            assert old[i] == new[j]
        for (i1, j1), (i2, j2) in zip(pairs, pairs[1:]):
            assert i1 < i2 and j1 < j2


# ---------------------------------------------------------------------------
# Edit scripts
# ---------------------------------------------------------------------------


class TestEditScriptProperties:
    @given(contents=st.lists(st.text(min_size=1).filter(lambda s: s != S), min_size=1, max_size=8))
    def test_alternating_scripts_validate(self, contents):
        edits: list[str] = []
        for content in contents:
            edits.extend([content, S])
        script = validate(edits)
        assert merge(script).count(S) >= len(contents)

    @given(
        contents=st.lists(st.text(min_size=1).filter(lambda s: s != S), min_size=2, max_size=8),
    )
    def test_adjacent_content_always_rejected(self, contents):
        try:
            validate(contents)
        except EditScriptAlternationError as exc:
            assert exc.index == 1
        else:
            raise AssertionError("adjacent content elements must be rejected")
