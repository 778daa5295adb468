"""FamilyHub household backend: chores, points, rewards, meals and daily learning."""
