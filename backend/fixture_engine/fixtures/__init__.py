"""
Fixture Generation Layer

Pure functions over immutable inputs:
- Accept teams, a PhaseConfig and (optionally) constraints and a seeded rng
- Return a FixtureGenerationResult with unsaved Match objects
- Do NOT touch storage; persistence belongs to the caller
"""
