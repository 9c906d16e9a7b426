from pydantic import BaseModel


class HealthCheck(BaseModel):
    success: bool = True
    status: str
    database_status: str
