from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    A single environment setting a client declares as part of its configuration.

    The full env key is derived by the client as {TYPE}_{ENGINE}_{env_key},
    e.g. "TICKET_JIRA_BASE_URL" for env_key="BASE_URL" on the Jira ticket client.

    Attributes:
        env_key (str): Key suffix of the environment variable.
        val_type (str): Expected value type: "string", "number", "bool" or "list".
        default (str | int | float | bool | list | None): Value used when the variable is unset.
            None marks the setting as required; validation fails at client construction.
    """

    env_key: str
    val_type: str = "string"
    default: str | int | float | bool | list | None = None
