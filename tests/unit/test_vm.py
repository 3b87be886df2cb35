"""Tests for the VM — dispatch loop, call frames and runtime errors."""

import pytest

from exprvm.chunk import Chunk, ConstantIndex, Op
from exprvm.compiler import Compiler, FunctionType, compile_source
from exprvm.errors import (
    ArithmeticFault,
    ArityError,
    AssertionFailedError,
    FrameOverflowError,
    MalformedBytecodeError,
    OperandTypeError,
    StepLimitExceeded,
)
from exprvm.objects import FunctionObject
from exprvm.run_types import VMConfig
from exprvm.values import FALSE, TRUE, Value, ValueKind
from exprvm.vm import VM


def _run(source, config=VMConfig()):
    return VM(config).interpret(compile_source(source))


def _function(*units, constants=(), arity=0, name="f"):
    """Helper: build a function object from raw bytecode units."""
    chunk = Chunk()
    for value in constants:
        chunk.add_constant(value)
    for unit in units:
        chunk.code.append(unit)
        chunk.lines.append(1)
    return FunctionObject(arity=arity, chunk=chunk, name=name)


class TestEvaluation:
    def test_precedence(self):
        assert _run("1 + 2 * 3") == Value.of_int(7)

    def test_exponent_left_associative(self):
        result = _run("2 ** 3 ** 2")
        assert result.kind == ValueKind.FLOAT
        assert result.payload == 64.0

    def test_exponent_accepts_mixed_kinds(self):
        assert _run("2.0 ** 3") == Value.of_float(8.0)
        assert _run("(2 ** 2) ** 2") == Value.of_float(16.0)
        assert _run("1j ** 2").kind == ValueKind.COMPLEX

    def test_division_promotion(self):
        assert _run("7 / 2") == Value.of_float(3.5)
        assert _run("7 // 2") == Value.of_int(3)

    def test_left_operand_is_pushed_first(self):
        assert _run("10 - 4") == Value.of_int(6)
        assert _run("1 < 2") == TRUE

    def test_grouping(self):
        assert _run("(1 + 2) * 3") == Value.of_int(9)

    def test_unary_minus(self):
        assert _run("-2 ** 2") == Value.of_float(4.0)

    def test_complex_arithmetic(self):
        assert _run("2j * 2j") == Value.of_complex(-4 + 0j)

    def test_last_expression_is_result(self):
        assert _run("1 2 3") == Value.of_int(3)

    def test_program_without_value(self):
        assert _run("assert 1 == 1") is None
        assert _run("") is None

    def test_stack_empty_after_outermost_return(self):
        vm = VM()
        vm.interpret(compile_source("1 2 1 + 2"))
        assert vm.stack == []
        assert vm.frames == []


class TestAssert:
    def test_passing_assert(self):
        _run("assert 1 == 1")

    def test_failing_assert(self):
        with pytest.raises(AssertionFailedError):
            _run("assert 1 == 2")

    def test_failing_assert_is_not_a_type_error(self):
        with pytest.raises(AssertionFailedError) as excinfo:
            _run("assert 1 == 2")
        assert not isinstance(excinfo.value, OperandTypeError)

    def test_assert_on_number(self):
        _run("assert 3")
        with pytest.raises(AssertionFailedError):
            _run("assert 1 - 1")

    def test_failure_reports_line(self):
        with pytest.raises(AssertionFailedError) as excinfo:
            _run("assert 1 == 1\nassert 2 < 1")
        assert excinfo.value.line == 2


class TestRuntimeErrors:
    def test_mixed_kinds(self):
        with pytest.raises(OperandTypeError):
            _run("1 + 1.0")

    def test_comparison_result_is_not_a_number(self):
        with pytest.raises(OperandTypeError, match="both operands must be numbers"):
            _run("(1 < 2) + 1")

    def test_division_by_zero(self):
        with pytest.raises(ArithmeticFault):
            _run("1 / 0")

    def test_not_on_integer(self):
        with pytest.raises(OperandTypeError):
            _run("not 1")

    def test_stray_operand_byte(self):
        function = _function(ConstantIndex(0), Op.RETURN, constants=[Value.of_int(1)])
        with pytest.raises(MalformedBytecodeError):
            VM().interpret(function)

    def test_running_off_the_end(self):
        function = _function(Op.NOOP)
        with pytest.raises(MalformedBytecodeError):
            VM().interpret(function)

    def test_step_limit(self):
        with pytest.raises(StepLimitExceeded):
            _run("1 + 2 + 3", VMConfig(max_steps=2))


class TestCalls:
    def test_arity_mismatch_fails_before_execution(self):
        function = _function(Op.NOOP, arity=2)
        vm = VM()
        vm.push(vm.load(function))
        vm.push(Value.of_int(1))
        with pytest.raises(ArityError, match="expected 2 arguments but got 1"):
            vm.call(function, 1)
        assert vm.frames == []

    def test_frame_slot_base(self):
        function = _function(Op.RETURN, arity=2)
        vm = VM()
        vm.push(Value.of_int(99))
        vm.push(vm.load(function))
        vm.push(Value.of_int(1))
        vm.push(Value.of_int(2))
        vm.call(function, 2)
        assert vm.frames[-1].slot_base == 1
        assert vm.frames[-1].ip == 0

    def test_frame_overflow(self):
        function = _function(Op.RETURN)
        vm = VM(VMConfig(max_frames=3))
        for _ in range(3):
            vm.push(vm.load(function))
            vm.call(function, 0)
        vm.push(vm.load(function))
        with pytest.raises(FrameOverflowError):
            vm.call(function, 0)

    def test_default_frame_limit(self):
        function = _function(Op.RETURN)
        vm = VM()
        callee = vm.load(function)
        for _ in range(255):
            vm.push(callee)
            vm.call(function, 0)
        vm.push(callee)
        with pytest.raises(FrameOverflowError):
            vm.call(function, 0)

    def test_nested_return_resumes_parent(self):
        script = compile_source("1 + 2")
        child = Compiler("40 + 2", FunctionType.FUNCTION, name="answer").compile()
        vm = VM()
        vm.push(vm.load(script))
        vm.call(script, 0)
        vm.push(vm.load(child))
        vm.call(child, 0)

        trace = vm.run_traced()

        assert trace.result == Value.of_int(3)
        child_return = next(
            s for s in trace.steps if s.function_name == "answer" and s.op == Op.RETURN
        )
        assert child_return.frame_depth == 1
        assert child_return.stack[-1] == Value.of_int(42)
        assert vm.stack == []

    def test_arguments_are_dropped_on_return(self):
        function = _function(
            Op.CONSTANT, ConstantIndex(0), Op.RETURN,
            constants=[Value.of_int(5)], arity=1,
        )
        script = _function(Op.RETURN, name="<script>")
        vm = VM()
        vm.push(vm.load(script))
        vm.call(script, 0)
        vm.push(vm.load(function))
        vm.push(Value.of_int(7))
        vm.call(function, 1)

        result = vm.run()

        # The child's 5 is left for the script, whose RETURN hands it back.
        assert result == Value.of_int(5)

    def test_argument_is_not_taken_as_result(self):
        function = _function(Op.RETURN, arity=1)
        vm = VM()
        vm.push(vm.load(function))
        vm.push(Value.of_int(7))
        vm.call(function, 1)

        assert vm.run() is None
        assert vm.stack == []

    def test_nested_return_without_value_is_malformed(self):
        function = _function(Op.RETURN, arity=1)
        script = _function(Op.RETURN, name="<script>")
        vm = VM()
        vm.push(vm.load(script))
        vm.call(script, 0)
        vm.push(vm.load(function))
        vm.push(Value.of_int(7))
        vm.call(function, 1)

        with pytest.raises(MalformedBytecodeError, match="returned without a value"):
            vm.run()


class TestOpcodes:
    def test_true_false_not_pop(self):
        function = _function(
            Op.TRUE, Op.FALSE, Op.POP, Op.NOT, Op.NOOP, Op.RETURN
        )
        assert VM().interpret(function) == FALSE

    def test_negative(self):
        function = _function(
            Op.CONSTANT, ConstantIndex(0), Op.NEGATIVE, Op.RETURN,
            constants=[Value.of_float(2.5)],
        )
        assert VM().interpret(function) == Value.of_float(-2.5)


class TestVMState:
    def test_intern_returns_canonical_string(self):
        vm = VM()
        first = vm.intern("".join(["na", "me"]))
        second = vm.intern("".join(["nam", "e"]))
        assert first is second

    def test_globals_start_empty(self):
        assert VM().globals == {}

    def test_heap_owns_loaded_functions(self):
        vm = VM()
        function = compile_source("1")
        ref = vm.load(function).payload
        assert vm.heap.get(ref) is function
        assert not function.marked

    def test_stats(self):
        vm = VM()
        vm.interpret(compile_source("1 + 2 * 3"))
        stats = vm.stats
        assert stats.steps == 6
        assert stats.max_stack_depth == 4
        assert stats.max_frame_depth == 1
        assert stats.heap_objects == 1
