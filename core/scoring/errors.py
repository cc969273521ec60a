class ScoringConfigError(ValueError):
    """Scoring configuration failed validation (weights, thresholds, policy)."""


class JobNotFoundError(LookupError):
    """The job does not exist in the current tenant scope."""

    def __init__(self, job_id: str):
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id


class ApplicationNotFoundError(LookupError):
    """The application does not exist in the current tenant scope."""

    def __init__(self, application_id: str):
        super().__init__(f"Application {application_id} not found")
        self.application_id = application_id
