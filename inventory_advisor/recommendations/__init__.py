"""
Recommendation engine: turns an inventory snapshot into a priority-sorted
list of ``Recommendation`` objects.

Modules
-------
depletion : FiniteDays / NEVER_DEPLETES projection — pure, no I/O.
rules     : The seven per-item checks + RuleContext — pure functions.
evaluator : RuleEvaluator + evaluate() — runs all rules, sorts by priority.
advisory  : AdvisoryClient + evaluate_via_advisory() — external endpoint
            with validated parsing and fallback to the evaluator.
"""
