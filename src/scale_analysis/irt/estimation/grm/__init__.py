"""
Graded Response Model (GRM) estimation.

This subpackage provides:
- GRMItemParameters: Parameter representation for GRM items
- GRMEstimator: MML-EM estimator for the GRM
- Analytical probability, gradient and Jacobian computations
- Cross-product standard errors
"""
