"""Terminal presentation of build jobs.

Modules
-------
renderer
    ``BuildRenderer`` turns ``BuildStatus`` snapshots into Rich panels and
    tails job logs by polling a ``LogSource``.
"""
