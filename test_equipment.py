import pytest

from equipment import canonical_equipment, display_names, has_equipment, requirements_met


@pytest.mark.parametrize('raw, expected', [
    ('Barbell', 'barbell'),
    ('  Barbells ', 'barbell'),
    ('DBs', 'dumbbell'),
    ('Cable Machine', 'cable'),
    ('Power Rack', 'squat rack'),
    ('Row Erg', 'rower'),
    ('Resistance Bands', 'band'),
    ('Landmines', 'landmine'),
    ('Glass', 'glass'),
])
def test_canonical_equipment(raw, expected):
    assert canonical_equipment(raw) == expected


def test_canonical_equipment_blanks():
    assert canonical_equipment('') is None
    assert canonical_equipment('   ') is None
    assert canonical_equipment(None) is None


def test_has_equipment_uses_canonical_names():
    kit = ['Dumbbells', 'Cable Machine']
    assert has_equipment(kit, 'dumbbell')
    assert has_equipment(kit, 'Cables')
    assert not has_equipment(kit, 'barbell')
    assert has_equipment([], 'bodyweight')


def test_no_substring_matching():
    # "bar" must not match "barbell" and vice versa
    assert not has_equipment(['Pull-Up Bar'], 'barbell')
    assert not has_equipment(['Barbell'], 'pull-up bar')


def test_requirements_met():
    kit = ['Barbell', 'Flat Bench', 'Rack']
    assert requirements_met(kit, ['barbell', 'bench', 'squat rack'])
    assert not requirements_met(['Barbell'], ['Barbell', 'Bench'])
    assert requirements_met([], ['bodyweight'])
    assert requirements_met([], [])


def test_display_names_dedupes_in_order():
    assert display_names(['Dumbbells', 'DB', 'Barbell', 'barbells']) == ['Dumbbells', 'Barbell']
