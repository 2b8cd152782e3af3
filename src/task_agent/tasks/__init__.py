"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, TaskType, ParsedCommand)
- command_parser.py: free-text description -> ParsedCommand
- task_dispatcher.py: routes a task to its collaborator and records the outcome
- task_history.py: append-only history (in-memory or SQLite)
- recurring.py: daily / interval triggers with overlap guard and error isolation
- task_scheduler.py: daily digest and meeting-reminder jobs
- task_api.py: AgentService, the boundary used by connectors
"""
