"""Read-only section occupancy figures, computed from live student counts."""

from academics.models import Section
from academics.services.sections import live_strength_annotation

FULL_THRESHOLD = 100
NEAR_FULL_THRESHOLD = 80
UNDERUTILIZED_THRESHOLD = 50


def _rate(part, whole) -> float:
    if not whole:
        return 0
    return round(part / whole * 100, 2)


def _active_sections(college_id, program_id=None):
    qs = Section.objects.filter(college_id=college_id, is_active=True)
    if program_id is not None:
        qs = qs.filter(program_id=program_id)
    return qs.select_related('program').annotate(live_strength=live_strength_annotation())


def get_section_wise_stats(college_id, program_id=None) -> list:
    stats = []
    for section in _active_sections(college_id, program_id):
        enrolled = section.live_strength
        stats.append({
            'section_id': section.pk,
            'name': section.name,
            'program_name': section.program.name,
            'program_code': section.program.code,
            'year': section.year,
            'shift': section.shift,
            'roll_start': section.roll_start,
            'roll_end': section.roll_end,
            'capacity': section.capacity,
            'total_students': enrolled,
            'occupancy_rate': _rate(enrolled, section.capacity),
            'available_seats': section.capacity - enrolled,
        })
    stats.sort(key=lambda s: (s['program_code'], s['year'], s['roll_start'] or 0, s['name']))
    return stats


def get_capacity_utilization(college_id) -> dict:
    """College-wide capacity against placed students.

    Sections are bucketed as full (>= 100%), near full (80% up to 100%) and
    underutilized (< 50%).
    """
    sections = list(_active_sections(college_id))
    total_capacity = sum(s.capacity for s in sections)
    total_enrolled = sum(s.live_strength for s in sections)

    full = near_full = underutilized = 0
    for section in sections:
        utilization = _rate(section.live_strength, section.capacity)
        if utilization >= FULL_THRESHOLD:
            full += 1
        elif utilization >= NEAR_FULL_THRESHOLD:
            near_full += 1
        if utilization < UNDERUTILIZED_THRESHOLD:
            underutilized += 1

    return {
        'total_capacity': total_capacity,
        'total_enrolled': total_enrolled,
        'available_seats': max(0, total_capacity - total_enrolled),
        'utilization_rate': _rate(total_enrolled, total_capacity),
        'sections': {
            'total': len(sections),
            'full': full,
            'near_full': near_full,
            'underutilized': underutilized,
        },
    }
