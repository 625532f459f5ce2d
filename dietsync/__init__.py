"""Diet Sync: synced settings, meals and streaks for a diet tracker."""
