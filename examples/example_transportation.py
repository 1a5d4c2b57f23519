"""
Example: Transportation problem with mipmodel

Ship goods from factories to stores at minimum cost while respecting
factory supply and store demand.

Problem:
    minimize    sum(cost[s][d] * ship[s][d])
    subject to  sum_d ship[s][d] <= supply[s]    for each factory s
                sum_s ship[s][d] >= demand[d]    for each store d
                ship[s][d] >= 0
"""

import sys

import mipmodel


def main(kind='HIGHS'):
    print()
    print("=" * 70)
    print(f"mipmodel Example: Transportation Problem ({kind})")
    print("=" * 70)
    print()

    supply = {'Factory1': 100, 'Factory2': 150}
    demand = {'Store1': 80, 'Store2': 70, 'Store3': 90}
    cost = {
        'Factory1': {'Store1': 2, 'Store2': 3, 'Store3': 1},
        'Factory2': {'Store1': 5, 'Store2': 4, 'Store3': 6},
    }

    with mipmodel.Solver(kind, name='transportation') as solver:
        # Shipped quantity for every (factory, store) pair
        ship = {}
        for source in supply:
            for dest in demand:
                ship[source, dest] = solver.var_float(f"x_{source}_{dest}")

        # Supply constraints
        for source in supply:
            shipped = mipmodel.LinearExpression()
            for dest in demand:
                shipped.add_var(ship[source, dest])
            solver.add_constraint_expr(shipped, '<=', supply[source], name=f"supply_{source}")

        # Demand constraints
        for dest in demand:
            received = mipmodel.LinearExpression()
            for source in supply:
                received.add_var(ship[source, dest])
            solver.add_constraint_expr(received, '>=', demand[dest], name=f"demand_{dest}")

        total_cost = mipmodel.LinearExpression()
        for (source, dest), var in ship.items():
            total_cost.add_term(var, cost[source][dest])
        solver.set_objective(total_cost, 'minimize')

        is_optimal, error = solver.solve()
        if error is not None:
            print(f"Error solving the problem: {error}")
            return

        print("Transportation plan:")
        for (source, dest), var in ship.items():
            print(f"  From {source} to {dest}: {var.value:.2f}")
        print()
        print(f"Total cost: {solver.objective_value():.2f}")
        print()
        print("=" * 70)
        print()


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else 'HIGHS')
