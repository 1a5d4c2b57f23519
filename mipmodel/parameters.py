"""
Parameters class for mipmodel engines
"""


class Parameters:
    """
    Configuration parameters passed to the optimization engine.

    Attributes
    ----------
    time_limit : float or None
        Wall-clock budget in seconds for each solve. ``None`` or a
        non-positive value means no limit (default: None)
    mip_rel_gap : float or None
        Relative MIP gap at which the engine may stop. ``None`` keeps the
        engine's own default (default: None)
    presolve : bool
        Enable engine presolve (default: True)
    verbose : bool
        Let the engine print its log to stdout (default: False)
    node_limit : int or None
        Maximum number of branch-and-bound nodes, HiGHS only (default: None)

    Examples
    --------
    >>> param = Parameters()
    >>> param.time_limit = 10.0
    >>> param.mip_rel_gap = 1e-6
    """

    def __init__(self):
        self.time_limit = None
        self.mip_rel_gap = None
        self.presolve = True
        self.verbose = False
        self.node_limit = None

    def __repr__(self):
        return (f"Parameters(time_limit={self.time_limit}, "
                f"mip_rel_gap={self.mip_rel_gap}, "
                f"presolve={self.presolve}, "
                f"verbose={self.verbose}, "
                f"node_limit={self.node_limit})")

    def has_time_limit(self) -> bool:
        """True when ``time_limit`` is a positive number of seconds"""
        return self.time_limit is not None and self.time_limit > 0

    @classmethod
    def from_dict(cls, d):
        """Create Parameters from dictionary, ignoring unknown keys"""
        param = cls()
        for key, value in d.items():
            if hasattr(param, key):
                setattr(param, key, value)
        return param

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'time_limit': self.time_limit,
            'mip_rel_gap': self.mip_rel_gap,
            'presolve': self.presolve,
            'verbose': self.verbose,
            'node_limit': self.node_limit,
        }
