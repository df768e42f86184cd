"""
Schema-driven multi-step form engine with draft and version persistence.
"""
