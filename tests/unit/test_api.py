"""Tests for the composable API functions in exprvm.api."""

import pytest

from exprvm.api import (
    bytecode_stats,
    compile_source,
    dump_bytecode,
    execute_traced,
    interpret,
    run,
    run_with_stats,
    tokenize_source,
)
from exprvm.chunk import Op
from exprvm.errors import (
    AssertionFailedError,
    CompileError,
    LexicalError,
    StepLimitExceeded,
)
from exprvm.objects import FunctionObject
from exprvm.run_types import PipelineStats, VMConfig
from exprvm.token_types import TokenType
from exprvm.tokenizer import Tokenizer
from exprvm.trace_types import ExecutionTrace
from exprvm.values import Value
from exprvm.vm_types import InterpretStatus

SIMPLE_SOURCE = "1 + 2 * 3"


class TestTokenizeSource:
    def test_returns_tokens(self):
        tokens = tokenize_source(SIMPLE_SOURCE)
        assert [t.type for t in tokens] == [
            TokenType.INTEGER,
            TokenType.PLUS,
            TokenType.INTEGER,
            TokenType.STAR,
            TokenType.INTEGER,
        ]


class TestCompileSource:
    def test_returns_script_function(self):
        function = compile_source(SIMPLE_SOURCE)
        assert isinstance(function, FunctionObject)
        assert function.name == "<script>"
        assert function.arity == 0


class TestDumpBytecode:
    def test_listing(self):
        listing = dump_bytecode("1 + 2")
        assert listing.splitlines() == [
            "== <script> ==",
            "0000    1 CONSTANT 0 (1)",
            "0002    1 CONSTANT 1 (2)",
            "0004    1 ADD",
            "0005    1 RETURN",
        ]


class TestBytecodeStats:
    def test_counts(self):
        assert bytecode_stats(SIMPLE_SOURCE) == {
            "CONSTANT": 3,
            "MULTIPLY": 1,
            "ADD": 1,
            "RETURN": 1,
        }


class TestRun:
    def test_value(self):
        assert run(SIMPLE_SOURCE) == Value.of_int(7)

    def test_raises_typed_errors(self):
        with pytest.raises(LexicalError):
            run("1 ? 2")
        with pytest.raises(CompileError):
            run("(1")
        with pytest.raises(AssertionFailedError):
            run("assert 1 == 2")


class TestInterpret:
    def test_ok(self):
        result = interpret("7 / 2")
        assert result.ok
        assert result.status == InterpretStatus.OK
        assert result.value == Value.of_float(3.5)
        assert result.error is None

    def test_compile_error(self):
        result = interpret("1 +")
        assert result.status == InterpretStatus.COMPILE_ERROR
        assert isinstance(result.error, CompileError)
        assert result.value is None

    def test_lexical_error_reports_as_compile_error(self):
        result = interpret("1 $ 2")
        assert result.status == InterpretStatus.COMPILE_ERROR
        assert isinstance(result.error, LexicalError)

    def test_separator_only_exponent_reports_as_compile_error(self):
        result = interpret("2.5E+_j")
        assert result.status == InterpretStatus.COMPILE_ERROR
        assert isinstance(result.error, LexicalError)

    def test_deep_nesting_reports_as_compile_error(self):
        result = interpret("(" * 2000 + "1" + ")" * 2000)
        assert result.status == InterpretStatus.COMPILE_ERROR
        assert isinstance(result.error, CompileError)

    def test_runtime_error(self):
        result = interpret("assert 1 == 2")
        assert result.status == InterpretStatus.RUNTIME_ERROR
        assert isinstance(result.error, AssertionFailedError)
        assert not result.ok


class TestExecuteTraced:
    def test_trace(self):
        trace = execute_traced("1 + 2")
        assert isinstance(trace, ExecutionTrace)
        assert [s.op for s in trace.steps] == [
            Op.CONSTANT,
            Op.CONSTANT,
            Op.ADD,
            Op.RETURN,
        ]
        assert trace.steps[2].stack[-1] == Value.of_int(3)
        assert trace.result == Value.of_int(3)
        assert trace.stats.steps == 4

    def test_snapshots_are_independent(self):
        trace = execute_traced("1 2")
        assert len(trace.steps[0].stack) == 2
        assert len(trace.steps[1].stack) == 3

    def test_respects_config(self):
        with pytest.raises(StepLimitExceeded):
            execute_traced("1 + 2", VMConfig(max_steps=1))


class TestRunWithStats:
    def test_stats(self):
        value, stats = run_with_stats("1 +\n2")
        assert value == Value.of_int(3)
        assert isinstance(stats, PipelineStats)
        assert stats.source_lines == 2
        assert stats.token_count == 3
        assert stats.bytecode_units == 6
        assert stats.constant_count == 2
        assert stats.execution_steps == 4

    def test_report(self):
        _, stats = run_with_stats(SIMPLE_SOURCE)
        report = stats.report()
        assert "Tokenize" in report
        assert "Execute (VM)" in report
        assert "5 tokens" in report

    def test_source_tokenized_once(self, monkeypatch):
        calls = []
        original = Tokenizer.tokenize

        def counting_tokenize(self):
            calls.append(self.source)
            return original(self)

        monkeypatch.setattr(Tokenizer, "tokenize", counting_tokenize)
        value, stats = run_with_stats(SIMPLE_SOURCE)
        assert value == Value.of_int(7)
        assert calls == [SIMPLE_SOURCE]
        assert stats.token_count == 5
