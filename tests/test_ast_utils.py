"""Unit tests for the expression helpers, on hand-built nodes."""
from jsunmask.analyzer.ast_utils import (
    array_expression_to_string,
    concat_binary_expression,
    get_call_expression_arguments,
    get_call_expression_identifier,
    get_member_expression_identifier,
)
from jsunmask.analyzer.nodes import (
    ArrayLiteral,
    BinaryExpression,
    CallExpression,
    Identifier,
    MemberExpression,
    NumberLiteral,
    OpaqueNode,
    StringLiteral,
)
from jsunmask.analyzer.tracer import VariableTracer


def plus(left, right):
    return BinaryExpression('+', left, right)


class TestConcatBinaryExpression:
    def test_literals(self):
        folded = concat_binary_expression(plus(plus(StringLiteral('ht'), StringLiteral('t')), StringLiteral('p')))

        assert folded.resolved
        assert folded.value == 'http'

    def test_blocked_at_unbound_identifier(self):
        leaf = Identifier('x')
        folded = concat_binary_expression(plus(StringLiteral('a'), leaf), VariableTracer())

        assert not folded.resolved
        assert folded.blocked_at is leaf

    def test_tracer_binding(self):
        tracer = VariableTracer()
        tracer.literal_identifiers['x'] = 'b'

        folded = concat_binary_expression(plus(StringLiteral('a'), Identifier('x')), tracer)

        assert folded.value == 'ab'

    def test_numbers(self):
        folded = concat_binary_expression(plus(plus(StringLiteral('v'), NumberLiteral(1)), NumberLiteral(2.0)))

        assert folded.value == 'v12'

    def test_nested_operator_blocks(self):
        nested = BinaryExpression('*', NumberLiteral(2), NumberLiteral(3))
        folded = concat_binary_expression(plus(StringLiteral('a'), nested))

        assert folded.blocked_at is nested

    def test_no_recursion_limit(self):
        node = StringLiteral('a')
        for _ in range(5000):
            node = plus(node, StringLiteral('a'))

        assert concat_binary_expression(node).value == 'a' * 5001


class TestMemberExpressionIdentifier:
    def test_dotted_chain(self):
        node = MemberExpression(MemberExpression(Identifier('process'), Identifier('mainModule')), Identifier('require'))

        assert get_member_expression_identifier(node) == ['process', 'mainModule', 'require']

    def test_computed_literals(self):
        node = MemberExpression(
            Identifier('Buffer'),
            plus(StringLiteral('fr'), StringLiteral('om')),
            computed=True
        )

        assert get_member_expression_identifier(node) == ['Buffer', 'from']

    def test_computed_identifier_needs_binding(self):
        node = MemberExpression(Identifier('Buffer'), Identifier('key'), computed=True)
        tracer = VariableTracer()

        assert get_member_expression_identifier(node, tracer) == ['Buffer']

        tracer.literal_identifiers['key'] = 'from'
        assert get_member_expression_identifier(node, tracer) == ['Buffer', 'from']

    def test_call_result_object(self):
        inner = CallExpression(Identifier('getBuffer'), [])
        node = MemberExpression(inner, Identifier('toString'))

        assert get_member_expression_identifier(node) == ['toString']


class TestCallExpressionIdentifier:
    def test_identifier_callee(self):
        assert get_call_expression_identifier(CallExpression(Identifier('require'), [])) == 'require'

    def test_member_callee(self):
        callee = MemberExpression(Identifier('path'), Identifier('join'))

        assert get_call_expression_identifier(CallExpression(callee, [])) == 'path.join'

    def test_call_callee(self):
        inner = CallExpression(Identifier('eval'), [StringLiteral('require')])
        outer = CallExpression(inner, [StringLiteral('x')])

        assert get_call_expression_identifier(outer) == 'eval'
        assert get_call_expression_identifier(outer, resolve_call_expression=False) is None

    def test_not_a_call(self):
        assert get_call_expression_identifier(Identifier('require')) is None


def test_call_expression_arguments():
    tracer = VariableTracer()
    tracer.literal_identifiers['name'] = 'require'
    node = CallExpression(Identifier('f'), [NumberLiteral(1), Identifier('name'), StringLiteral('x'), Identifier('other')])

    assert get_call_expression_arguments(node, tracer) == ['require', 'x']


def test_array_expression_to_string():
    tracer = VariableTracer()
    tracer.literal_identifiers['c'] = 'c'
    node = ArrayLiteral([
        StringLiteral('a'),
        StringLiteral(''),
        NumberLiteral(98),
        NumberLiteral(1.5),
        Identifier('c'),
        OpaqueNode('object'),
    ])

    assert list(array_expression_to_string(node, tracer)) == ['a', 'b', 'c']
    assert list(array_expression_to_string(StringLiteral('a'))) == []
