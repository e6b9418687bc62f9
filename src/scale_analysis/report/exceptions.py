from scale_analysis.report.stages import Stage


class PipelineStageError(Exception):
    """A report stage failed; later stages were not run."""

    def __init__(self, stage: Stage, cause: BaseException) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(
            f"Stage '{stage.value}' failed: {type(cause).__name__}: {cause}"
        )
