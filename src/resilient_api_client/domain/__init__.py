"""Pure client logic with no IO."""
