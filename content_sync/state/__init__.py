from .events import EventHub, KeyEvent, UnloadEvent
from .manager import EditState, EditStateManager
from .scheduling import AsyncioScheduler, Debouncer, ManualScheduler, Scheduler
