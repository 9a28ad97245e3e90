# Services package init
"""
Jokebox Backend: Services Layer
================================

Service Inventory:
    - validation:    field validators and the optimistic submission preview
    - JokeStore:     keyed persistence for jokes (find, insert, delete)
    - JokeService:   read / create / delete flows with ownership checks
    - AuthService:   registration, credential checks, login form workflow
"""
