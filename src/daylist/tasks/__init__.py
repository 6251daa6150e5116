"""
Task list subsystem.

Components:
- task_models.py: data structures (TaskList, Task, ListState, views)
- errors.py: rejection kinds + StorageError
- allocator.py: rank -> percentage split of the daily 100 points
- lifecycle.py: open / submitted / closed transitions and mutation gates
- task_store.py: SQLite-backed storage with a per-call unit of work
- task_api.py: high-level operations used by the rest of the app
- sweeper.py: auto-closure of lists from past days
"""
