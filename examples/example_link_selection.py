"""
Example: Link selection under a time budget

Prefix groups select network links so that each group reaches its wanted
capacity, every link serves at most one group, and the load is balanced
across the devices owning the links. The instance is large enough that the
solve is usually stopped by the time limit, so the example reports the
best bound and relative gap next to the objective.
"""

import argparse
import datetime
import logging

import numpy as np

import mipmodel


def build_and_solve(num_groups, num_links, num_devices, time_limit, kind):
    rng = np.random.default_rng(42)

    capacities = rng.integers(100, 900, size=num_links) + rng.random(num_links)
    wanted = 1000.0 * np.arange(1, num_groups + 1)
    latencies = rng.random(num_links) * 49 + 1
    loss = rng.random(num_links)
    owner = rng.integers(0, num_devices, size=num_links)

    alpha, beta, gamma = 1.0, 100.0, 1e6

    with mipmodel.Solver(kind, name='link_selection') as solver:
        # selected[g][k] == 1 iff group g uses link k
        selected = [[solver.var_bool(f"link_{k}_group_{g}") for k in range(num_links)]
                    for g in range(num_groups)]

        for k in range(num_links):
            solver.add(sum(selected[g][k] for g in range(num_groups)) <= 1)

        # Per-device usage fraction upper bound, and the global maximum of those
        device_ub = [solver.var_float(f"usage_ub_device_{d}", 0, 1) for d in range(num_devices)]
        global_ub = solver.var_float("usage_ub_global", 0, 1)

        for d in range(num_devices):
            links = np.flatnonzero(owner == d)
            used = mipmodel.LinearExpression()
            for k in links:
                for g in range(num_groups):
                    used.add_term(selected[g][k], capacities[k])
            used.add_term(device_ub[d], -capacities[links].sum())
            solver.add_constraint_expr(used, '<=', 0)
            solver.add(global_ub >= device_ub[d])

        for g in range(num_groups):
            capacity = mipmodel.LinearExpression()
            for k in range(num_links):
                capacity.add_term(selected[g][k], capacities[k])
            solver.add_constraint_expr(capacity, '>=', wanted[g])

        penalty = mipmodel.LinearExpression()
        for g in range(num_groups):
            for k in range(num_links):
                penalty.add_term(selected[g][k],
                                 (alpha * latencies[k] + beta * loss[k]) * capacities[k])
        penalty.add_term(global_ub, gamma)
        solver.minimize(penalty)

        is_optimal, error = solver.solve(datetime.timedelta(seconds=time_limit))
        if error is not None:
            print(f"Solver error: {error}")
            return

        if is_optimal:
            print("The objective is guaranteed to be optimal.")
        else:
            print("Suboptimal feasible solution found within the time limit.")

        gap = solver.gap()
        print(f"Best objective found:      {solver.objective_value():.2f}")
        print(f"Max device usage fraction: {global_ub.value:.2f}")
        print(f"Best bound:                {solver.best_bound():.2f}")
        if gap is not None:
            print(f"Gap:                       {gap * 100:.2f}%")
        print()

        for g in range(num_groups):
            links = [k for k in range(num_links) if selected[g][k].value > 0.5]
            total = capacities[links].sum() if links else 0.0
            print(f"Group {g}: wanted {wanted[g]:.2f}, got {total:.2f}, links {links}")


def main():
    parser = argparse.ArgumentParser(description="Link selection example")
    parser.add_argument('--groups', type=int, default=10)
    parser.add_argument('--links', type=int, default=600)
    parser.add_argument('--devices', type=int, default=40)
    parser.add_argument('--time-limit', type=float, default=30.0)
    parser.add_argument('--solver', default='HIGHS', help="HIGHS, CBC or SCIP")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    build_and_solve(args.groups, args.links, args.devices, args.time_limit, args.solver)


if __name__ == "__main__":
    main()
