"""core/ -- Configuration and the database handle. Imports nothing from auth/."""
