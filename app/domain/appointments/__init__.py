"""Appointment domain - booking, rescheduling and cancellation"""

from .router import router

__all__ = ["router"]
