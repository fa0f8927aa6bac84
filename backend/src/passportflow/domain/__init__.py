"""Domain layer: aggregates, state machines, ports and the error taxonomy"""
