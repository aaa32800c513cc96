"""Reminder service module (dispatch loop, store, email sender, scheduler).

The dispatcher runs inside the API process as an asyncio background task, or
one tick at a time from Celery beat when deployed as a separate worker.
"""
