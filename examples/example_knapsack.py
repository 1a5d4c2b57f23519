"""
Example: 0/1 knapsack with mipmodel

Pick a subset of items maximizing total value without exceeding the
knapsack capacity.

Problem:
    maximize    sum(value[i] * take[i])
    subject to  sum(weight[i] * take[i]) <= capacity
                take[i] in {0, 1}
"""

import logging

import mipmodel


def main():
    print()
    print("=" * 70)
    print("mipmodel Example: 0/1 Knapsack")
    print("=" * 70)
    print()

    weights = [10, 20, 30, 40, 50, 25, 1]
    values = [60, 100, 120, 140, 160, 130, 10]
    capacity = 100

    print(f"Items (weight, value): {list(zip(weights, values))}")
    print(f"Capacity: {capacity}")
    print()

    # Step 1: Create a solver (HiGHS ships with SciPy)
    with mipmodel.Solver('HIGHS', name='knapsack') as solver:

        # Step 2: One binary variable per item
        take = [solver.var_bool(f"take_{i}") for i in range(len(weights))]

        # Step 3: Capacity constraint
        weight = mipmodel.LinearExpression()
        for item, w in zip(take, weights):
            weight.add_term(item, w)
        solver.add_constraint_expr(weight, '<=', capacity, name='capacity')

        # Step 4: Objective
        value = mipmodel.LinearExpression()
        for item, v in zip(take, values):
            value.add_term(item, v)
        solver.set_objective(value, 'maximize')

        # Step 5: Solve
        result = solver.solve()
        print(result)
        print()

        is_optimal, error = result
        if error is not None:
            print(f"Solve failed: {error}")
            return

        # Step 6: Display results
        picked = [i for i, item in enumerate(take) if item.value > 0.5]
        print("Selected items:")
        for i in picked:
            print(f"  item {i}: weight {weights[i]}, value {values[i]}")
        print(f"Total weight: {sum(weights[i] for i in picked)}")
        print(f"Total value:  {solver.objective_value():.0f}")
        print(f"Proven optimal: {is_optimal}")
        print()
        print("=" * 70)
        print()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    try:
        main()
    except ImportError as e:
        print(f"Error: {e}")
        print("\nPlease install mipmodel first:")
        print("  python -m pip install .")
    except Exception as e:
        print(f"Error: {e}")
        import traceback
        traceback.print_exc()
