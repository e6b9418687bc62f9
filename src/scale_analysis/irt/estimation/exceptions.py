from scale_analysis.irt.estimation.enums import ConvergenceStatus


class ConvergenceError(Exception):
    """The EM optimizer did not reach a stable solution.

    Carries the partial diagnostics available at the point of failure.
    """

    def __init__(
        self,
        status: ConvergenceStatus,
        n_iterations: int,
        log_likelihood: float,
        message: str | None = None,
    ) -> None:
        self.status = status
        self.n_iterations = n_iterations
        self.log_likelihood = log_likelihood
        super().__init__(
            message
            or (
                f"Estimation did not converge ({status.value}) after "
                f"{n_iterations} iterations, last LL={log_likelihood:.4f}"
            )
        )


class ConvergenceTimeout(ConvergenceError):
    """The fit exceeded its wall-clock budget."""

    def __init__(
        self,
        timeout_seconds: float,
        n_iterations: int,
        log_likelihood: float,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(
            ConvergenceStatus.TIMEOUT,
            n_iterations,
            log_likelihood,
            message=(
                f"Estimation exceeded {timeout_seconds:.1f}s after "
                f"{n_iterations} iterations, last LL={log_likelihood:.4f}"
            ),
        )
