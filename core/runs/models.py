from pydantic import BaseModel, ConfigDict


class CompletedRunOutcome(BaseModel):
    """
    Result of a run that reached "completed".

    Carries the newest assistant message of the thread, already reduced to
    its text.
    """
    model_config = ConfigDict(frozen=True)

    run_id: str
    message_id: str
    text: str
