"""
Academics views package.

- base: permission helpers and serializers
- catalog: subjects, classrooms, groups and time slots
- classes: classes, terms, time-slot assignment and enrollment
- attendance: taking attendance and attendance summaries
"""
