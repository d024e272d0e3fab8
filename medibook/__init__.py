"""MediBook - role-based doctor appointment booking service"""
