"""Client domain - Client lifecycle (active, paused, archived)"""
