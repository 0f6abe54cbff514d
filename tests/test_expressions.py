"""Tests for the transformexpr expression language.

Tests cover:
- Lexer: Tokenization of expression strings
- Parser: Postfix generation and syntax errors
- Evaluator: Stack evaluation, variables, operators
- Built-in functions: All registered functions
- Custom functions: Dispatch order and failure propagation
"""

import math
import struct
import warnings

import numpy as np
import pytest

from transformexpr.config import EvaluatorConfig
from transformexpr.expressions import (
    BUILTINS,
    CONSTANTS,
    BindingTypeError,
    CustomFunction,
    EvaluationContext,
    EvaluationError,
    Evaluator,
    FunctionCall,
    FunctionCategory,
    Lexer,
    LexerError,
    Numeric,
    NumberValue,
    ObjectValue,
    Operator,
    OperatorKind,
    ParseError,
    Token,
    TokenType,
    UnknownFunctionError,
    UnknownVariableError,
    Variable,
    VariableBindings,
    BoundValue,
    evaluate,
    evaluate_strict,
    parse,
    try_evaluate,
)
from transformexpr.expressions.parser import OpenParen, Separator


def assert_fails(expression, variables=None, functions=()):
    ok, value = try_evaluate(expression, variables, functions)
    assert ok is False
    assert math.isnan(value)


# =============================================================================
# Lexer Tests
# =============================================================================


class TestLexer:
    """Tests for the expression lexer."""

    def test_tokenize_numbers(self):
        tokens = Lexer("42 3.14 0").tokenize()

        assert tokens[0] == Token(TokenType.NUMBER, 42.0, 0)
        assert tokens[1] == Token(TokenType.NUMBER, 3.14, 3)
        assert tokens[2] == Token(TokenType.NUMBER, 0.0, 8)
        assert tokens[3] == Token(TokenType.EOF, None, 9)

    def test_tokenize_operators(self):
        tokens = Lexer("+ - * / ^ %").tokenize()

        types = [t.type for t in tokens[:-1]]
        assert types == [
            TokenType.PLUS,
            TokenType.MINUS,
            TokenType.MULTIPLY,
            TokenType.DIVIDE,
            TokenType.POWER,
            TokenType.MODULO,
        ]

    def test_tokenize_whitespace_kinds(self):
        tokens = Lexer("1\t+\r\n2").tokenize()
        assert [t.type for t in tokens] == [
            TokenType.NUMBER,
            TokenType.PLUS,
            TokenType.NUMBER,
            TokenType.EOF,
        ]

    def test_tokenize_identifiers(self):
        tokens = Lexer("this index_a log10").tokenize()

        assert tokens[0] == Token(TokenType.IDENTIFIER, "this", 0)
        assert tokens[1] == Token(TokenType.IDENTIFIER, "index_a", 5)
        assert tokens[2] == Token(TokenType.IDENTIFIER, "log10", 13)

    def test_tokenize_constant(self):
        tokens = Lexer("PI EPSILON").tokenize()
        assert tokens[0] == Token(TokenType.CONSTANT, "PI", 0)
        assert tokens[1] == Token(TokenType.CONSTANT, "EPSILON", 3)

    def test_tokenize_function_captures_raw_arguments(self):
        tokens = Lexer("max(1, (2)) + 1").tokenize()

        assert tokens[0] == Token(TokenType.FUNCTION, ("max", "1, (2)"), 0)
        assert tokens[1].type == TokenType.PLUS

    def test_space_before_paren_is_not_a_call(self):
        tokens = Lexer("max (1)").tokenize()
        assert tokens[0] == Token(TokenType.IDENTIFIER, "max", 0)
        assert tokens[1].type == TokenType.LPAREN

    def test_malformed_number(self):
        with pytest.raises(LexerError):
            Lexer("1.2.3").tokenize()

    def test_unexpected_character(self):
        with pytest.raises(LexerError) as exc_info:
            Lexer("2 # 3").tokenize()
        assert exc_info.value.position == 2

    def test_unclosed_function_call(self):
        with pytest.raises(LexerError):
            Lexer("max(1, 2").tokenize()


# =============================================================================
# Parser Tests
# =============================================================================


class TestParser:
    """Tests for infix to postfix conversion."""

    def test_precedence(self):
        assert parse("2 + 3 * 4") == [
            Numeric(2.0),
            Numeric(3.0),
            Numeric(4.0),
            Operator(OperatorKind.MULTIPLY),
            Operator(OperatorKind.ADD),
        ]

    def test_left_to_right_for_equal_rank(self):
        assert parse("10 - 3 - 2") == [
            Numeric(10.0),
            Numeric(3.0),
            Operator(OperatorKind.SUBTRACT),
            Numeric(2.0),
            Operator(OperatorKind.SUBTRACT),
        ]

    def test_parentheses(self):
        assert parse("(1 + 2) * 3") == [
            Numeric(1.0),
            Numeric(2.0),
            Operator(OperatorKind.ADD),
            Numeric(3.0),
            Operator(OperatorKind.MULTIPLY),
        ]

    def test_parenthesised_operators_pop_in_reverse(self):
        assert parse("(1 + 2 * 3)") == [
            Numeric(1.0),
            Numeric(2.0),
            Numeric(3.0),
            Operator(OperatorKind.MULTIPLY),
            Operator(OperatorKind.ADD),
        ]

    def test_power_pushes_without_flushing(self):
        assert parse("2 ^ 3 ^ 2") == [
            Numeric(2.0),
            Numeric(3.0),
            Numeric(2.0),
            Operator(OperatorKind.POWER),
            Operator(OperatorKind.POWER),
        ]

    def test_variable(self):
        assert parse("this") == [Variable("this")]

    def test_constant(self):
        assert parse("PI") == [Numeric(CONSTANTS["PI"])]

    def test_function_call_arguments(self):
        nodes = parse("max(1, 2 + 3)")
        assert nodes == [
            FunctionCall(
                "max",
                [
                    [Numeric(1.0)],
                    [Numeric(2.0), Numeric(3.0), Operator(OperatorKind.ADD)],
                ],
            )
        ]

    def test_nested_function_call(self):
        nodes = parse("max(1, min(3, 0))")
        inner = nodes[0].arguments[1][0]
        assert isinstance(inner, FunctionCall)
        assert inner.name == "min"
        assert inner.arguments == [[Numeric(3.0)], [Numeric(0.0)]]

    def test_empty_call_has_no_arguments(self):
        assert parse("answer()") == [FunctionCall("answer", [])]

    def test_output_has_no_markers(self):
        nodes = parse("clamp((this + 1) * 2, 0, max(1, 2))")

        def walk(seq):
            for node in seq:
                assert not isinstance(node, (Separator, OpenParen))
                if isinstance(node, FunctionCall):
                    for argument in node.arguments:
                        walk(argument)

        walk(nodes)

    @pytest.mark.parametrize("source", ["", "   ", "\t\n"])
    def test_empty_expression(self, source):
        with pytest.raises(ParseError):
            parse(source)

    def test_unknown_constant(self):
        with pytest.raises(ParseError, match="FOO"):
            parse("FOO")

    @pytest.mark.parametrize("source", ["(1 + 2", "1 + 2)", "((1)", "max(1, (2, 3))"])
    def test_unmatched_parentheses(self, source):
        with pytest.raises((ParseError, LexerError)):
            parse(source)

    def test_comma_outside_call(self):
        with pytest.raises(ParseError):
            parse("1, 2")

    def test_max_depth(self):
        config = EvaluatorConfig(max_depth=1)
        parse("max(1, 2)", config)
        with pytest.raises(ParseError, match="nesting depth"):
            parse("max(min(1), 2)", config)

    def test_max_depth_zero_forbids_calls(self):
        with pytest.raises(ParseError):
            parse("abs(1)", EvaluatorConfig(max_depth=0))


# =============================================================================
# Evaluator Tests
# =============================================================================


class TestEvaluator:
    """Tests for expression evaluation."""

    def test_precedence(self):
        assert evaluate("2 + 3 * 4") == 14
        assert evaluate("(2 + 3) * 4") == 20

    def test_left_associative_subtraction(self):
        assert evaluate("10 - 3 - 2") == 5

    def test_division_order(self):
        assert evaluate("8 / 2 / 2") == 2

    def test_chained_power_groups_right(self):
        assert evaluate("2 ^ 3 ^ 2") == 512

    def test_power_with_other_operators(self):
        assert evaluate("2 * 3 ^ 2") == 18
        assert evaluate("2 ^ 3 * 2") == 16

    def test_modulo_and_multiply_same_rank(self):
        assert evaluate("10 % 4 * 3") == 6

    def test_modulo_sign_follows_dividend(self):
        assert evaluate("7 % 3") == 1
        assert evaluate("(0 - 7) % 3") == -1
        assert evaluate("7.5 % 2") == 1.5

    def test_float32_arithmetic(self):
        expected = float(np.float32(0.1) + np.float32(0.2))
        assert evaluate("0.1 + 0.2") == expected

    def test_integer_and_decimal_literals(self):
        assert evaluate("3") == 3.0
        assert evaluate("2.5 * 2") == 5.0

    def test_variable_substitution(self):
        assert evaluate("this + 10", {"this": 5.0}) == 15

    def test_variables_as_pairs_first_match_wins(self):
        assert evaluate("a", [("a", 1), ("a", 2)]) == 1

    def test_missing_variable_fails(self):
        assert_fails("missing + 1", {"this": 5.0})

    def test_opaque_variable_cannot_be_operand(self):
        assert_fails("objects + 1", {"objects": ["a", "b"]})

    def test_bool_binding_is_opaque(self):
        assert_fails("flag", {"flag": True})

    def test_constants(self):
        assert evaluate("PI") == pytest.approx(3.14159265, rel=1e-6)
        assert evaluate("EPSILON") > 0
        assert evaluate("EPSILON") == float(np.finfo(np.float32).smallest_subnormal)

    def test_unknown_constant_fails(self):
        assert_fails("FOO")

    def test_division_by_zero_follows_ieee(self):
        ok, value = try_evaluate("1 / 0")
        assert ok is True
        assert value == math.inf

        assert evaluate("(0 - 1) / 0") == -math.inf

        ok, value = try_evaluate("0 / 0")
        assert ok is True
        assert math.isnan(value)

    def test_modulo_by_zero_is_nan(self):
        ok, value = try_evaluate("1 % 0")
        assert ok is True
        assert math.isnan(value)

    def test_overflow_is_infinite(self):
        assert evaluate("10 ^ 50") == math.inf

    @pytest.mark.parametrize(
        "source",
        ["(1 + 2", "1 +", "+", "1 2", "max(1,,2)", "1.2.3", "2 $ 3", "   "],
    )
    def test_malformed_input_fails(self, source):
        assert_fails(source)

    def test_idempotent(self):
        variables = {"this": 1.7, "index": 3}
        first = evaluate("sin(this) * index + sqrt(PI)", variables)
        second = evaluate("sin(this) * index + sqrt(PI)", variables)
        assert struct.pack("<d", first) == struct.pack("<d", second)

    def test_evaluator_rejects_markers(self):
        evaluator = Evaluator(EvaluationContext())
        with pytest.raises(EvaluationError):
            evaluator.evaluate([Numeric(1.0), Separator(), Numeric(2.0)])

    def test_evaluator_rejects_empty_sequence(self):
        with pytest.raises(EvaluationError):
            Evaluator(EvaluationContext()).evaluate([])

    def test_operator_needs_two_operands(self):
        with pytest.raises(EvaluationError, match="two operands"):
            Evaluator(EvaluationContext()).evaluate([Numeric(1.0), Operator(OperatorKind.ADD)])

    def test_evaluate_strict_raises(self):
        with pytest.raises(UnknownVariableError):
            evaluate_strict("nope")
        with pytest.raises(UnknownFunctionError):
            evaluate_strict("nope(1)")

    def test_result_is_python_float(self):
        assert type(evaluate("1 + 1")) is float

    def test_depth_limit_from_config(self):
        config = EvaluatorConfig(max_depth=2)
        ok, _ = try_evaluate("abs(abs(1))", config=config)
        assert ok is True
        ok, value = try_evaluate("abs(abs(abs(1)))", config=config)
        assert ok is False
        assert math.isnan(value)

    def test_pathological_nesting_does_not_raise(self):
        depth = 1500
        expression = "abs(" * depth + "1" + ")" * depth
        ok, value = try_evaluate(expression)
        assert ok is False
        assert math.isnan(value)

    def test_literal_beyond_float32_is_quiet_inf(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            ok, value = try_evaluate("1" + "0" * 39)
        assert ok is True
        assert value == math.inf

    def test_binding_beyond_float32_is_quiet_inf(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            ok, value = try_evaluate("this + 1", {"this": 1e39})
        assert ok is True
        assert value == math.inf

    def test_integer_binding_too_large_fails(self):
        ok, value = try_evaluate("this + 1", {"this": 10**400})
        assert ok is False
        assert math.isnan(value)
        with pytest.raises(BindingTypeError):
            evaluate_strict("this", {"this": 10**400})


# =============================================================================
# Built-in Function Tests
# =============================================================================


class TestBuiltinFunctions:
    """Tests for built-in functions."""

    def test_registry_contents(self):
        expected = {
            "abs", "acos", "asin", "atan", "atan2", "approximately", "ceil",
            "floor", "round", "sign", "sqrt", "exp", "log", "log10", "pow",
            "sin", "cos", "tan", "degrees", "radians", "clamp", "saturate",
            "lerp", "smoothstep", "frac", "max", "min",
        }
        assert {f.name for f in BUILTINS.list_all()} == expected

    def test_abs(self):
        assert evaluate("abs(0 - 3)") == 3

    def test_sign(self):
        assert evaluate("sign(4)") == 1
        assert evaluate("sign(0)") == 1
        assert evaluate("sign(0 - 2)") == -1

    def test_sqrt_pow_exp(self):
        assert evaluate("sqrt(16)") == 4
        assert evaluate("pow(2, 8)") == 256
        assert evaluate("exp(0)") == 1

    def test_log(self):
        assert evaluate("log(1)") == 0
        assert evaluate("log(8, 2)") == pytest.approx(3)
        assert evaluate("log10(1000)") == pytest.approx(3)

    def test_trigonometry(self):
        assert evaluate("sin(0)") == 0
        assert evaluate("cos(0)") == 1
        assert evaluate("tan(0)") == 0
        assert evaluate("asin(1)") == pytest.approx(math.pi / 2, rel=1e-6)
        assert evaluate("acos(1)") == 0
        assert evaluate("atan(1)") == pytest.approx(math.pi / 4, rel=1e-6)
        assert evaluate("atan2(1, 1)") == pytest.approx(math.pi / 4, rel=1e-6)
        assert evaluate("atan2(1, 0)") == pytest.approx(math.pi / 2, rel=1e-6)

    def test_acos_out_of_domain_is_nan(self):
        ok, value = try_evaluate("acos(2)")
        assert ok is True
        assert math.isnan(value)

    def test_degrees_and_radians_share_factor(self):
        # Both functions multiply by 180/PI; radians() is not the inverse of degrees().
        assert evaluate("degrees(PI)") == pytest.approx(180, rel=1e-5)
        assert evaluate("radians(180)") == pytest.approx(180 * 180 / math.pi, rel=1e-5)
        assert evaluate("radians(1)") == evaluate("degrees(1)")

    def test_rounding(self):
        assert evaluate("ceil(1.2)") == 2
        assert evaluate("floor(1.8)") == 1
        assert evaluate("floor(0 - 1.2)") == -2

    def test_round_half_away_from_zero(self):
        assert evaluate("round(2.5)") == 3
        assert evaluate("round(0 - 2.5)") == -3
        assert evaluate("round(1.4)") == 1
        assert evaluate("round(0.5)") == 1

    def test_clamp_and_saturate(self):
        assert evaluate("clamp(this, 0, 1)", {"this": 5.0}) == 1.0
        assert evaluate("clamp(0 - 5, 0, 1)") == 0
        assert evaluate("clamp(0.5, 0, 1)") == 0.5
        assert evaluate("saturate(1.5)") == 1
        assert evaluate("saturate(0.25)") == 0.25

    def test_lerp_clamps_t(self):
        assert evaluate("lerp(0, 10, 0.5)") == 5
        assert evaluate("lerp(0, 10, 2)") == 10
        assert evaluate("lerp(0, 10, 0 - 1)") == 0

    def test_smoothstep(self):
        assert evaluate("smoothstep(0, 10, 0.5)") == 5
        assert evaluate("smoothstep(0, 10, 0.25)") == 1.5625
        assert evaluate("smoothstep(0, 10, 3)") == 10

    def test_frac_truncates_toward_zero(self):
        assert evaluate("frac(1.25)") == 0.25
        assert evaluate("frac(0 - 1.25)") == -0.25

    def test_variadic_max_min(self):
        assert evaluate("max(1, 2, min(3, 0))") == 2.0
        assert evaluate("max(3)") == 3
        assert evaluate("min(4, 2, 8)") == 2

    def test_max_without_arguments_fails(self):
        assert_fails("max()")

    def test_approximately(self):
        assert evaluate("approximately(1, 1)") == 1
        assert evaluate("approximately(1, 1.1)") == 0
        assert evaluate("approximately(0.1 + 0.2, 0.3)") == 1

    @pytest.mark.parametrize("source", ["clamp(1, 2)", "atan2(1)", "pow(2)", "abs()"])
    def test_too_few_arguments_fails(self, source):
        assert_fails(source)

    def test_surplus_arguments_ignored(self):
        assert evaluate("abs(0 - 1, 5)") == 1

    def test_unknown_function_fails(self):
        assert_fails("nope(1)")

    def test_export_documentation_by_category(self):
        docs = BUILTINS.export_documentation(FunctionCategory.INTERPOLATION)
        assert set(docs["functions"]) == {"lerp", "smoothstep"}
        assert docs["byCategory"] == {"interpolation": ["lerp", "smoothstep"]}

    def test_get_unknown_raises(self):
        with pytest.raises(UnknownFunctionError):
            BUILTINS.get("nope")

    def test_definition_arity(self):
        log = BUILTINS.get("log")
        assert log.min_arguments == 1
        assert log.max_arguments == 2
        assert BUILTINS.get("max").max_arguments is None


# =============================================================================
# Custom Function Tests
# =============================================================================


class TestCustomFunctions:
    """Tests for caller-registered functions."""

    def test_custom_function_called(self):
        double = CustomFunction("double", lambda args, variables: args[0] * 2)
        assert evaluate("double(this) + 1", {"this": 2}, [double]) == 5

    def test_nested_custom_calls(self):
        double = CustomFunction("double", lambda args, variables: args[0] * 2)
        assert evaluate("double(double(1 + 1))", None, [double]) == 8

    def test_custom_function_receives_arguments_and_bindings(self):
        seen = {}

        def body(args, variables):
            seen["args"] = args
            seen["this"] = variables.number("this")
            seen["axis"] = variables.object("__attribute")
            return 0.0

        variables = [("this", 4.0), ("__attribute", "y")]
        evaluate("record(1, 2 * 3)", variables, [CustomFunction("record", body)])

        assert seen["args"] == [1.0, 6.0]
        assert all(type(a) is float for a in seen["args"])
        assert seen["this"] == 4.0
        assert seen["axis"] == "y"

    def test_builtin_wins_over_custom(self):
        calls = []

        def fake_abs(args, variables):
            calls.append(args)
            return 99.0

        assert evaluate("abs(0 - 2)", None, [CustomFunction("abs", fake_abs)]) == 2
        assert calls == []

    def test_first_custom_function_wins(self):
        functions = [
            CustomFunction("pick", lambda args, variables: 1.0),
            CustomFunction("pick", lambda args, variables: 2.0),
        ]
        assert evaluate("pick(0)", None, functions) == 1

    def test_zero_argument_custom_function(self):
        answer = CustomFunction("answer", lambda args, variables: 42)
        assert evaluate("answer()", None, [answer]) == 42

    def test_failing_body_fails_evaluation(self):
        second = CustomFunction("second", lambda args, variables: args[1])
        assert_fails("second(1)", None, [second])
        assert evaluate("second(1, 7)", None, [second]) == 7

    def test_body_error_is_wrapped(self):
        def body(args, variables):
            raise RuntimeError("boom")

        with pytest.raises(EvaluationError, match="boom") as exc_info:
            evaluate_strict("explode(1)", None, [CustomFunction("explode", body)])
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_non_numeric_result_fails(self):
        text = CustomFunction("text", lambda args, variables: "nope")
        assert_fails("text(1)", None, [text])

    def test_argument_failure_skips_call(self):
        calls = []

        def body(args, variables):
            calls.append(args)
            return 0.0

        assert_fails("record(missing)", None, [CustomFunction("record", body)])
        assert calls == []

    def test_result_too_large_fails(self):
        huge = CustomFunction("huge", lambda args, variables: 10**400)
        ok, value = try_evaluate("huge(1)", None, [huge])
        assert ok is False
        assert math.isnan(value)
        with pytest.raises(EvaluationError, match="out of range"):
            evaluate_strict("huge(1)", None, [huge])

    def test_float_result_beyond_float32_is_quiet_inf(self):
        big = CustomFunction("big", lambda args, variables: 1e39)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            assert evaluate("big(1)", None, [big]) == math.inf


# =============================================================================
# Variable Binding Tests
# =============================================================================


class TestVariableBindings:
    """Tests for bound values and binding sets."""

    def test_numbers_become_number_values(self):
        assert isinstance(BoundValue.of(5), NumberValue)
        assert isinstance(BoundValue.of(2.5), NumberValue)
        assert isinstance(BoundValue.of(np.float32(1)), NumberValue)

    def test_other_values_become_object_values(self):
        assert isinstance(BoundValue.of("x"), ObjectValue)
        assert isinstance(BoundValue.of([1, 2]), ObjectValue)
        assert isinstance(BoundValue.of(True), ObjectValue)

    def test_wrong_variant_access_raises(self):
        with pytest.raises(BindingTypeError):
            NumberValue(np.float32(1)).as_object()
        with pytest.raises(BindingTypeError):
            ObjectValue("x").as_number()

    def test_lookup(self):
        variables = VariableBindings({"this": 5, "__attribute": "x"})

        assert variables.number("this") == 5
        assert variables.object("__attribute") == "x"
        assert "this" in variables
        assert "that" not in variables
        assert variables.names() == ["this", "__attribute"]
        assert len(variables) == 2

    def test_lookup_missing_raises(self):
        with pytest.raises(UnknownVariableError):
            VariableBindings().lookup("this")

    def test_existing_bound_values_are_kept(self):
        value = ObjectValue([1, 2, 3])
        variables = VariableBindings([("items", value)])
        assert variables.lookup("items") is value
