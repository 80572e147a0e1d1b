# Marks `paycheck.deps` as a package so `from paycheck.deps.auth import require_user` resolves.
