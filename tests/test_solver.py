"""Tests for the Solver lifecycle, using a scripted engine."""

import datetime
import math
import unittest
from unittest import mock

from mipmodel import (
    Solver, SolverState, ResultStatus, Parameters, EngineKind, LinearExpression,
    between,
    InfeasibleError, UnboundedError, AbnormalError, ModelInvalidError,
    NotSolvedError, UnknownStatusError, InvalidRelationError,
    InvalidDirectionError, ModelError, SolutionUnavailableError,
    SolverReleasedError, SolverStateError, UnsupportedEngineError,
    EngineCreationError,
)
from tests.fakes import FakeEngine, solver_with


class StatusMappingTest(unittest.TestCase):
    def solve_with_status(self, status):
        engine = FakeEngine(status=status, objective=5.0, bound=5.0)
        solver = solver_with(engine)
        self.addCleanup(solver.release_resources)
        x = solver.var_float('x', 0, 10)
        solver.maximize(x)
        return solver, solver.solve()

    def test_optimal(self):
        solver, result = self.solve_with_status(0)
        is_optimal, error = result
        self.assertTrue(is_optimal)
        self.assertIsNone(error)
        self.assertIs(result.status, ResultStatus.OPTIMAL)
        self.assertEqual(result.objective_value, 5.0)
        self.assertIs(solver.state, SolverState.SOLVED)

    def test_feasible(self):
        _, result = self.solve_with_status(1)
        is_optimal, error = result
        self.assertFalse(is_optimal)
        self.assertIsNone(error)
        self.assertTrue(result.is_feasible())

    def test_error_statuses(self):
        cases = [
            (2, InfeasibleError, "problem is infeasible"),
            (3, UnboundedError, "problem is unbounded"),
            (4, AbnormalError, "solver encountered an abnormal condition"),
            (5, ModelInvalidError, "model is invalid"),
            (6, NotSolvedError, "problem was not solved"),
            (42, UnknownStatusError, "unknown result status"),
            (-1, UnknownStatusError, "unknown result status"),
        ]
        for code, error_cls, message in cases:
            with self.subTest(code=code):
                solver, result = self.solve_with_status(code)
                is_optimal, error = result
                self.assertFalse(is_optimal)
                self.assertIsInstance(error, error_cls)
                self.assertEqual(str(error), message)
                self.assertFalse(result.is_feasible())
                self.assertIsNone(result.objective_value)
                with self.assertRaises(SolutionUnavailableError):
                    solver.objective_value()
                with self.assertRaises(SolutionUnavailableError):
                    solver.variables[0].value

    def test_unknown_status_keeps_raw_code(self):
        _, result = self.solve_with_status(42)
        self.assertIsNone(result.status)
        self.assertEqual(result.raw_status, 42)
        self.assertEqual(result.error.status, 42)


class ModelConstructionTest(unittest.TestCase):
    def setUp(self):
        self.engine = FakeEngine()
        self.solver = solver_with(self.engine)
        self.x = self.solver.var_float('x', 0, 10)
        self.y = self.solver.var_int('y', -5, 5)
        self.b = self.solver.var_bool('b')

    def tearDown(self):
        self.solver.release_resources()

    def test_variables_registered_with_engine(self):
        self.assertEqual(self.engine.variables, [
            ('x', 0.0, 10.0, False),
            ('y', -5.0, 5.0, True),
            ('b', 0.0, 1.0, True),
        ])
        self.assertEqual([v.index for v in self.solver.variables], [0, 1, 2])
        self.assertEqual(self.solver.num_variables, 3)
        self.assertEqual(self.b.name, 'b')
        self.assertEqual((self.b.lower_bound, self.b.upper_bound), (0.0, 1.0))

    def test_var_array(self):
        xs = self.solver.var_array(3, name_prefix='z', upper_bound=4, var_type='integer')
        self.assertEqual([v.name for v in xs], ['z0', 'z1', 'z2'])
        self.assertEqual(self.engine.variables[-1], ('z2', 0.0, 4.0, True))
        bs = self.solver.var_array(2, name_prefix='s', var_type='binary')
        self.assertEqual(self.engine.variables[-1], ('s1', 0.0, 1.0, True))
        self.assertEqual(len(bs), 2)

    def test_default_names(self):
        v = self.solver.var_float()
        self.assertEqual(v.name, 'x3')

    def test_relation_to_row_bounds(self):
        expr = 2 * self.x + 3 * self.y
        le = self.solver.add_constraint_expr(expr, '<=', 7)
        ge = self.solver.add_constraint_expr(expr, '>=', 7)
        eq = self.solver.add_constraint_expr(expr, '==', 7)
        self.assertEqual(self.engine.rows, [(-math.inf, 7.0), (7.0, math.inf), (7.0, 7.0)])
        self.assertEqual((le.lower_bound, le.upper_bound), (-math.inf, 7.0))
        self.assertEqual((ge.lower_bound, ge.upper_bound), (7.0, math.inf))
        self.assertEqual((eq.lower_bound, eq.upper_bound), (7.0, 7.0))
        for row in range(3):
            self.assertEqual(self.engine.coefficients[(row, 0)], 2.0)
            self.assertEqual(self.engine.coefficients[(row, 1)], 3.0)

    def test_additivity_gives_same_row(self):
        twice = LinearExpression().add_term(self.x, 2.0).add_term(self.x, 3.0)
        once = LinearExpression().add_term(self.x, 5.0)
        c1 = self.solver.add_constraint_expr(twice, '<=', 4)
        c2 = self.solver.add_constraint_expr(once, '<=', 4)
        self.assertEqual(self.engine.coefficients[(c1.index, 0)],
                         self.engine.coefficients[(c2.index, 0)])
        self.assertEqual(c1.terms, c2.terms)
        self.assertEqual((c1.index, c2.index), (0, 1))

    def test_expression_constant_moves_to_rhs(self):
        c = self.solver.add_constraint_expr(self.x + 3, '<=', 10)
        self.assertEqual(c.upper_bound, 7.0)

    def test_invalid_relations_leave_model_untouched(self):
        for token in ('<', '>', '=>', 'lt'):
            with self.subTest(token=token):
                with self.assertRaises(InvalidRelationError):
                    self.solver.add_constraint_expr(self.x + self.y, token, 1)
        self.assertEqual(self.engine.rows, [])
        self.assertEqual(self.solver.num_constraints, 0)

    def test_constraint_copies_terms(self):
        expr = 1 * self.x
        c = self.solver.add_constraint_expr(expr, '<=', 1)
        expr.add_term(self.y, 4)
        self.assertEqual(c.terms, {self.x: 1.0})
        self.assertNotIn((c.index, 1), self.engine.coefficients)

    def test_add_relations(self):
        c1 = self.solver.add(self.x + self.y <= 4, name='cap')
        c2 = self.solver.add(between(1, self.x - self.y, 3))
        self.assertEqual(c1.name, 'cap')
        self.assertEqual(c2.name, 'c1')
        self.assertEqual(self.engine.rows, [(-math.inf, 4.0), (1.0, 3.0)])
        with self.assertRaises(TypeError):
            self.solver.add('x <= 1')

    def test_bare_variable_equality_hint(self):
        with self.assertRaisesRegex(TypeError, r"1 \* x == 3"):
            self.solver.add(self.x == 3)
        self.assertEqual(self.engine.rows, [])
        c = self.solver.add(1 * self.x == 3)
        self.assertEqual((c.lower_bound, c.upper_bound), (3.0, 3.0))

    def test_range_constraint_with_inverted_bounds(self):
        with self.assertRaises(ModelError):
            self.solver.add_range_constraint(self.x, 3, 1)

    def test_foreign_variable_is_rejected(self):
        other = solver_with(FakeEngine())
        self.addCleanup(other.release_resources)
        foreign = other.var_float('f')
        with self.assertRaises(ModelError):
            self.solver.add_constraint_expr(self.x + foreign, '<=', 1)
        with self.assertRaises(ModelError):
            self.solver.set_objective(foreign, 'minimize')
        self.assertEqual(self.engine.rows, [])

    def test_objective_replacement(self):
        self.solver.set_objective(5 * self.x + 2 * self.y, 'maximize')
        self.assertEqual(self.engine.objective, {0: 5.0, 1: 2.0})
        self.assertTrue(self.engine.maximize)

        objective = self.solver.set_objective(3 * self.b, 'minimize')
        self.assertEqual(self.engine.objective, {0: 0.0, 1: 0.0, 2: 3.0})
        self.assertFalse(self.engine.maximize)
        self.assertEqual(objective.terms, {self.b: 3.0})
        self.assertIs(self.solver.objective, objective)

    def test_objective_overwrites_shared_variable(self):
        self.solver.maximize(4 * self.x)
        self.solver.maximize(1 * self.x)
        self.assertEqual(self.engine.objective, {0: 1.0})

    def test_invalid_direction_keeps_previous_objective(self):
        previous = self.solver.maximize(4 * self.x)
        with self.assertRaises(InvalidDirectionError):
            self.solver.set_objective(self.y, 'maximise')
        self.assertIs(self.solver.objective, previous)
        self.assertEqual(self.engine.objective, {0: 4.0})
        self.assertTrue(self.engine.maximize)


class SolveTest(unittest.TestCase):
    def test_time_limit_propagation(self):
        cases = [
            (None, None),
            (0, None),
            (-3, None),
            (2.5, 2.5),
            (datetime.timedelta(seconds=4), 4.0),
            (datetime.timedelta(0), None),
        ]
        for time_limit, expected in cases:
            with self.subTest(time_limit=time_limit):
                engine = FakeEngine()
                with solver_with(engine) as solver:
                    solver.solve(time_limit)
                self.assertEqual(engine.time_limits, [expected])

    def test_parameters_time_limit_is_the_fallback(self):
        engine = FakeEngine()
        param = Parameters.from_dict({'time_limit': 30})
        with solver_with(engine, parameters=param) as solver:
            solver.solve()
            solver.solve(5)
        self.assertEqual(engine.time_limits, [30.0, 5.0])

    def test_objective_offset(self):
        engine = FakeEngine(objective=10.0, bound=12.0, status=1)
        with solver_with(engine) as solver:
            x = solver.var_float('x')
            solver.maximize(x + 100)
            solver.solve()
            self.assertEqual(solver.objective_value(), 110.0)
            self.assertEqual(solver.best_bound(), 112.0)

    def test_solution_values(self):
        engine = FakeEngine(values={0: 1.5, 1: 3.0})
        with solver_with(engine) as solver:
            x = solver.var_float('x')
            y = solver.var_float('y')
            with self.assertRaises(SolutionUnavailableError):
                x.value
            solver.solve()
            self.assertEqual(x.value, 1.5)
            self.assertEqual(y.value, 3.0)
            self.assertEqual(list(solver.values()), [1.5, 3.0])

    def test_model_change_invalidates_solution(self):
        engine = FakeEngine(values={0: 2.0})
        with solver_with(engine) as solver:
            x = solver.var_float('x')
            solver.solve()
            self.assertEqual(x.value, 2.0)
            solver.add_constraint_expr(x, '<=', 1)
            self.assertIs(solver.state, SolverState.BUILT)
            self.assertIsNone(solver.status)
            with self.assertRaises(SolutionUnavailableError):
                x.value
            solver.solve()
            self.assertEqual(engine.solve_calls, 2)

    def test_engine_exception_propagates(self):
        engine = FakeEngine()
        engine.solve = mock.Mock(side_effect=RuntimeError("boom"))
        with solver_with(engine) as solver:
            with self.assertRaisesRegex(RuntimeError, "boom"):
                solver.solve()
            self.assertIs(solver.state, SolverState.SOLVED)
            with self.assertRaises(SolutionUnavailableError):
                solver.objective_value()

    def test_reentrant_solve_is_rejected(self):
        engine = FakeEngine()
        solver = solver_with(engine)
        self.addCleanup(solver.release_resources)

        def nested_solve():
            with self.assertRaises(SolverStateError):
                solver.solve()
            with self.assertRaises(SolverStateError):
                solver.var_float('late')
            return 0

        engine.solve = nested_solve
        result = solver.solve()
        self.assertTrue(result.is_optimal())


class GapTest(unittest.TestCase):
    def gap_for(self, status, objective, bound):
        engine = FakeEngine(status=status, objective=objective, bound=bound)
        with solver_with(engine) as solver:
            solver.var_float('x')
            result = solver.solve()
            gap = solver.gap()
        self.assertEqual(result.gap, gap)
        return gap

    def test_optimal_gap_is_zero(self):
        self.assertEqual(self.gap_for(0, 100.0, 100.0001), 0.0)

    def test_feasible_gap(self):
        self.assertAlmostEqual(self.gap_for(1, 90.0, 100.0), 10.0 / 90.0)
        self.assertAlmostEqual(self.gap_for(1, 110.0, 100.0), 10.0 / 110.0)

    def test_gap_is_non_negative_for_negative_objective(self):
        self.assertAlmostEqual(self.gap_for(1, -50.0, -40.0), 0.2)

    def test_zero_objective(self):
        self.assertEqual(self.gap_for(1, 0.0, 0.0), 0.0)
        self.assertIsNone(self.gap_for(1, 0.0, 3.0))

    def test_infinite_bound(self):
        self.assertIsNone(self.gap_for(1, 10.0, math.inf))

    def test_gap_requires_solution(self):
        with solver_with(FakeEngine(status=2)) as solver:
            with self.assertRaises(SolutionUnavailableError):
                solver.gap()
            solver.solve()
            with self.assertRaises(SolutionUnavailableError):
                solver.gap()


class LifecycleTest(unittest.TestCase):
    def test_release_is_idempotent(self):
        engine = FakeEngine()
        solver = solver_with(engine)
        solver.release_resources()
        solver.release_resources()
        self.assertEqual(engine.close_calls, 1)
        self.assertTrue(solver.is_released())
        self.assertIs(solver.state, SolverState.RELEASED)

    def test_operations_after_release(self):
        engine = FakeEngine(values={0: 1.0})
        solver = solver_with(engine)
        x = solver.var_float('x')
        solver.solve()
        solver.release_resources()

        operations = [
            lambda: solver.var_float('y'),
            lambda: solver.var_int('y', 0, 1),
            lambda: solver.var_bool('y'),
            lambda: solver.add_constraint_expr(1 * x, '<=', 1),
            lambda: solver.set_objective(x, 'minimize'),
            lambda: solver.solve(),
            lambda: solver.objective_value(),
            lambda: solver.best_bound(),
            lambda: solver.gap(),
            lambda: x.value,
            lambda: solver.num_variables,
            lambda: solver.num_constraints,
            lambda: solver.variables,
            lambda: solver.constraints,
            lambda: solver.objective,
        ]
        for op in operations:
            with self.assertRaises(SolverReleasedError):
                op()
        self.assertEqual(engine.solve_calls, 1)

    def test_context_manager_releases_on_error(self):
        engine = FakeEngine()
        with self.assertRaises(InvalidRelationError):
            with solver_with(engine) as solver:
                solver.add_constraint_expr(solver.var_float('x'), '<', 1)
        self.assertEqual(engine.close_calls, 1)
        self.assertTrue(solver.is_released())

    def test_garbage_collection_releases(self):
        engine = FakeEngine()
        solver = solver_with(engine)
        solver.__del__()
        self.assertEqual(engine.close_calls, 1)

    def test_repr(self):
        solver = solver_with(FakeEngine(), name='plan')
        solver.var_float('x')
        self.assertIn("variables=1", repr(solver))
        solver.release_resources()
        self.assertIn("released", repr(solver))


class ConstructionTest(unittest.TestCase):
    def test_unsupported_kind(self):
        for kind in ('GUROBI', 'cplex', '', None):
            with self.subTest(kind=kind):
                with self.assertRaises(UnsupportedEngineError):
                    Solver(kind)

    def test_kind_parsing(self):
        with mock.patch('mipmodel.solver.create_engine', return_value=FakeEngine()) as create:
            solver = Solver('cbc')
        self.assertIs(solver.kind, EngineKind.CBC)
        create.assert_called_once_with(EngineKind.CBC, solver.parameters)
        solver.release_resources()

    def test_engine_failure_is_a_construction_error(self):
        with mock.patch('mipmodel.engine._ENGINE_FACTORIES',
                        {EngineKind.HIGHS: mock.Mock(side_effect=MemoryError("oom"))}):
            with self.assertRaises(EngineCreationError) as ctx:
                Solver('HIGHS')
        self.assertIsInstance(ctx.exception.__cause__, MemoryError)


class ResultsTest(unittest.TestCase):
    def test_to_dict(self):
        engine = FakeEngine(status=1, objective=90.0, bound=100.0)
        with solver_with(engine) as solver:
            solver.var_float('x')
            result = solver.solve()
        d = result.to_dict()
        self.assertEqual(d['status'], 'FEASIBLE')
        self.assertEqual(d['raw_status'], 1)
        self.assertIsNone(d['error'])
        self.assertEqual(d['objective_value'], 90.0)
        self.assertEqual(d['best_bound'], 100.0)
        self.assertIn('FEASIBLE', str(result))

    def test_error_in_dict(self):
        with solver_with(FakeEngine(status=2)) as solver:
            result = solver.solve()
        self.assertEqual(result.to_dict()['error'], "problem is infeasible")
        self.assertIn("problem is infeasible", str(result))


if __name__ == '__main__':
    unittest.main()
