"""Tests for mipmodel.modeling."""

import math
import unittest

from mipmodel import (
    LinearExpression, LinearRelation, RangeRelation, Relation, Direction, VarType,
    InvalidRelationError, InvalidDirectionError, ModelError, between,
)
from tests.fakes import FakeEngine, solver_with


class LinearExpressionTest(unittest.TestCase):
    def setUp(self):
        self.solver = solver_with(FakeEngine())
        self.x = self.solver.var_float('x', 0, 10)
        self.y = self.solver.var_float('y', 0, 10)
        self.z = self.solver.var_int('z', 0, 5)

    def tearDown(self):
        self.solver.release_resources()

    def test_add_term_accumulates(self):
        expr = LinearExpression()
        expr.add_term(self.x, 2.5)
        expr.add_term(self.x, -1.0)
        expr.add_term(self.y, 4)
        self.assertEqual(expr.coefficient(self.x), 1.5)
        self.assertEqual(expr.coefficient(self.y), 4.0)
        self.assertEqual(len(expr), 2)

    def test_add_term_twice_equals_single_sum(self):
        twice = LinearExpression().add_term(self.x, 3).add_term(self.x, 4)
        once = LinearExpression().add_term(self.x, 7)
        self.assertEqual(twice.terms, once.terms)

    def test_zero_net_coefficient_is_kept(self):
        expr = LinearExpression().add_term(self.x, 2).add_term(self.x, -2)
        self.assertIn(self.x, expr.terms)
        self.assertEqual(expr.coefficient(self.x), 0.0)

    def test_add_var(self):
        expr = LinearExpression().add_var(self.x).add_var(self.x)
        self.assertEqual(expr.coefficient(self.x), 2.0)

    def test_add_expr_leaves_other_unmodified(self):
        expr = LinearExpression().add_term(self.x, 1)
        other = LinearExpression().add_term(self.x, 2).add_term(self.y, 3)
        expr.add_expr(other)
        self.assertEqual(expr.terms, {self.x: 3.0, self.y: 3.0})
        self.assertEqual(other.terms, {self.x: 2.0, self.y: 3.0})

    def test_terms_is_a_copy(self):
        expr = LinearExpression().add_term(self.x, 1)
        expr.terms[self.y] = 5.0
        self.assertNotIn(self.y, expr.terms)

    def test_unknown_variable_has_zero_coefficient(self):
        self.assertEqual(LinearExpression().coefficient(self.z), 0.0)

    def test_operators(self):
        expr = 3 * self.x + 2 * self.y - self.x + 5
        self.assertEqual(expr.coefficient(self.x), 2.0)
        self.assertEqual(expr.coefficient(self.y), 2.0)
        self.assertEqual(expr.constant, 5.0)

        expr = -(self.x - self.y) / 2
        self.assertEqual(expr.coefficient(self.x), -0.5)
        self.assertEqual(expr.coefficient(self.y), 0.5)

        expr = 10 - self.z
        self.assertEqual(expr.coefficient(self.z), -1.0)
        self.assertEqual(expr.constant, 10.0)

    def test_sum_of_variables(self):
        expr = sum([self.x, self.y, self.z])
        self.assertEqual(expr.terms, {self.x: 1.0, self.y: 1.0, self.z: 1.0})

    def test_no_quadratic_terms(self):
        with self.assertRaises(TypeError):
            (self.x + 1) * self.y
        with self.assertRaises(TypeError):
            self.x / self.y

    def test_iteration_yields_pairs(self):
        expr = LinearExpression().add_term(self.x, 1).add_term(self.y, 2)
        self.assertEqual(dict(expr), {self.x: 1.0, self.y: 2.0})

    def test_repr(self):
        self.assertEqual(repr(LinearExpression()), "0")
        expr = LinearExpression().add_term(self.x, 3).add_var(self.y).add_term(self.z, -1)
        self.assertEqual(repr(expr), "3.0*x + y - z")

    def test_variables_are_hashable_by_identity(self):
        other = self.solver.var_float('x', 0, 10)
        self.assertEqual(len({self.x, other}), 2)


class RelationTest(unittest.TestCase):
    def setUp(self):
        self.solver = solver_with(FakeEngine())
        self.x = self.solver.var_float('x')
        self.y = self.solver.var_float('y')

    def tearDown(self):
        self.solver.release_resources()

    def test_parse_tokens(self):
        self.assertIs(Relation.parse('<='), Relation.LE)
        self.assertIs(Relation.parse('>='), Relation.GE)
        self.assertIs(Relation.parse('=='), Relation.EQ)
        self.assertIs(Relation.parse('='), Relation.EQ)
        self.assertIs(Relation.parse(Relation.GE), Relation.GE)

    def test_strict_inequalities_are_rejected(self):
        for token in ('<', '>'):
            with self.assertRaisesRegex(InvalidRelationError, "strict"):
                Relation.parse(token)

    def test_unknown_tokens_are_rejected(self):
        for token in ('=<', '!=', '', 'le', None, 3):
            with self.assertRaises(InvalidRelationError):
                Relation.parse(token)

    def test_row_bounds(self):
        self.assertEqual(Relation.LE.row_bounds(4.0), (-math.inf, 4.0))
        self.assertEqual(Relation.GE.row_bounds(4.0), (4.0, math.inf))
        self.assertEqual(Relation.EQ.row_bounds(4.0), (4.0, 4.0))

    def test_comparison_operators_build_relations(self):
        rel = 2 * self.x + self.y <= 10
        self.assertIsInstance(rel, LinearRelation)
        self.assertIs(rel.relation, Relation.LE)
        self.assertEqual(rel.rhs, 10.0)

        rel = self.x >= self.y + 3
        self.assertIs(rel.relation, Relation.GE)
        self.assertEqual(rel.expression.terms, {self.x: 1.0, self.y: -1.0})
        self.assertEqual(rel.rhs, 3.0)

        rel = (self.x + self.y) == 7
        self.assertIs(rel.relation, Relation.EQ)

    def test_strict_comparison_operators_raise(self):
        with self.assertRaises(InvalidRelationError):
            self.x + self.y < 3
        with self.assertRaises(InvalidRelationError):
            self.x > 3

    def test_between(self):
        rel = between(1, self.x - self.y, 4)
        self.assertIsInstance(rel, RangeRelation)
        self.assertEqual((rel.lower, rel.upper), (1.0, 4.0))
        with self.assertRaises(ModelError):
            between(5, self.x, 4)


class EnumParsingTest(unittest.TestCase):
    def test_direction(self):
        self.assertIs(Direction.parse('Maximize'), Direction.MAXIMIZE)
        self.assertIs(Direction.parse(' minimize '), Direction.MINIMIZE)
        for bad in ('max', '', None, 1):
            with self.assertRaises(InvalidDirectionError):
                Direction.parse(bad)

    def test_var_type(self):
        self.assertFalse(VarType.CONTINUOUS.is_integer)
        self.assertTrue(VarType.INTEGER.is_integer)
        self.assertTrue(VarType.BINARY.is_integer)


if __name__ == '__main__':
    unittest.main()
