"""
bayes-simfit — Test Suite
=========================

Test modules:
- test_core.py: parameter validation, capture-history utilities
- test_models.py: PyMC model construction
- test_simulate.py: data simulation mode
- test_bayesian.py: MCMC fitting and posterior summaries
- test_recovery.py: end-to-end simulate-and-refit workflows
"""
