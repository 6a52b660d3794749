"""
Services Layer

Crew assignment business logic:
- Accept domain inputs (sessions, match paths, crew proposals)
- Return domain outputs (conflict records, outcomes, counts)
- Do NOT depend on HTTP request/response objects
- Only the commit writers mutate Match rows
"""
