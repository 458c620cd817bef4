from pydantic import BaseModel


class StatsResponse(BaseModel):
    online_count: int
    rooms_count: int
    waiting_count: int

class HealthResponse(BaseModel):
    status: str
