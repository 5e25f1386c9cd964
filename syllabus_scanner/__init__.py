"""
Syllabus scanner core package.

Turns photographed or imported syllabus pages into a saved course with dated
assignments: OCR of the page images, structured extraction through a
language-model API, an editable review stage, a transactional course store,
and optional export of the assignments to a calendar.
"""
