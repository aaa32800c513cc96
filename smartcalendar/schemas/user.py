from pydantic import BaseModel


class ReminderSettings(BaseModel):
    receive_reminders: bool

    class Config:
        from_attributes = True
