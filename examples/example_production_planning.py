"""
Example: Production planning with integer variables

We make chairs and tables from limited wood and labor and want the most
profitable whole-number production plan. The model is built with
comparison operators instead of explicit expressions.
"""

import datetime

import mipmodel


def main():
    print()
    print("=" * 70)
    print("mipmodel Example: Production Planning")
    print("=" * 70)
    print()

    products = ['chairs', 'tables']
    usage = {
        'chairs': {'wood': 5, 'labor': 5},
        'tables': {'wood': 12, 'labor': 6},
    }
    available = {'wood': 1200, 'labor': 800}
    profit = {'chairs': 10, 'tables': 20}

    param = mipmodel.Parameters()
    param.mip_rel_gap = 1e-6

    solver = mipmodel.new_solver('HIGHS', param)
    try:
        units = {p: solver.var_int(f"x_{p}", 0, float('inf')) for p in products}

        for resource, limit in available.items():
            used = sum(usage[p][resource] * units[p] for p in products)
            solver.add(used <= limit, name=resource)

        solver.maximize(sum(profit[p] * units[p] for p in products))

        result = solver.solve(datetime.timedelta(seconds=30))
        print(result)
        print()
        if not result.is_feasible():
            return

        print("Production plan:")
        for product, var in units.items():
            print(f"  {product}: {var.value:.0f}")
        print(f"\nTotal profit: {solver.objective_value():.2f}")
        print(f"Best bound:   {solver.best_bound():.2f}")

        print("\nResource usage:")
        for resource, limit in available.items():
            used = sum(units[p].value * usage[p][resource] for p in products)
            print(f"  {resource}: {used:.2f}/{limit:.2f}")
        print()
        print("=" * 70)
        print()
    finally:
        solver.release_resources()


if __name__ == "__main__":
    main()
