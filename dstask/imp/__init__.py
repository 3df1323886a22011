"""Importing tasks from a taskwarrior export into a task repository."""