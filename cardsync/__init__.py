# Card sync: keep one Trello card in step with a planner's task list
#
# Components:
#   schema.py      - Data model (Task, Card, Checklist, Session, SyncOutcome)
#   errors.py      - Error taxonomy
#   status.py      - Status → list role mapping and board layout discovery
#   description.py - Task block reconciliation inside a card description
#   checklist.py   - Tiered checklist item matching and reconciliation
#   session.py     - On-disk session state (active card, tracked tasks)
#   sync.py        - Sync orchestration and progress reporting
#   linker.py      - Bootstraps task → card links by board search
#   workflow.py    - Card lifecycle: create, pickup, sync, complete, status
#   client.py      - Trello REST client
#   plan.py        - Title and task extraction from plan text
#   labels.py      - Keyword-based card labels
#   config.py      - cardsync.yaml and environment configuration
#   cli.py         - Command line and planner hook entry point
