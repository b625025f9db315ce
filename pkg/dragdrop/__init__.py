# Drag-and-drop task movement: gesture tracking, drop placement, optimistic status updates
#
# Components:
#   schema.py    - Data model (Task, Point, CardSlot, DropOutcome, ReconcileResult)
#   board.py     - Local column -> ordered task-id view
#   gestures.py  - Pointer/touch normalization into start/move/end/cancel
#   dropzone.py  - Insertion index among sibling cards
#   session.py   - Single active drag session state machine
#   reconcile.py - Optimistic move, backend status update, rollback
#   backend.py   - HTTP client for the status-update RPC
#   surface.py   - UI surface interface + headless implementation
#   manager.py   - Wires the above together behind one gesture sink
#   notify.py    - Notification sinks
#   journal.py   - JSONL journal of settled moves
#   store.py     - SQLite task store behind the reference status server
#   config.py    - YAML configuration
