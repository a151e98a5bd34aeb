"""
Routing call state machine.

received -> candidates_computed -> constraints_evaluated
    -> {path_selected | rejected} -> completed

A failed call is rejected; RouteOutcome.stage then names the stage the
failure was detected in. completed is the only success state.
"""

RECEIVED = "received"
CANDIDATES_COMPUTED = "candidates_computed"
CONSTRAINTS_EVALUATED = "constraints_evaluated"
PATH_SELECTED = "path_selected"
REJECTED = "rejected"
COMPLETED = "completed"
