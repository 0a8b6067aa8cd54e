# Services package init
"""
Notes API — Services Layer
===========================

What:  Business logic between routes (HTTP) and the database (persistence).

Service Inventory:
    - NoteService: validation and single-statement CRUD on the notes table
"""
