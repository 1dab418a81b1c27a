"""
Task subsystem.

Components:
- task_models.py: Task, TaskState, wait conditions and resume outcomes
- task_api.py: TaskContext / HostServices handed to every program
- task_router.py: decides which tasks an event (or due timer) resumes
- task_scheduler.py: focus ring, timers, the poll/route/reap/render loop
"""
