"""
CSV import and export of club rosters (users, coaches, sportifs).

Imports validate each row on its own and report the failures instead of
aborting the whole file. Rows are numbered as in a spreadsheet (header = 1).
"""
import io
import pandas as pd
from flask import current_app, make_response
from sportclub.extensions import db
from sportclub.models import User, Coach, Category, Sportif, UserRole, parse_enum
from sportclub.utils.dates import parse_date

USER_COLUMNS = ['name', 'email', 'role', 'password']
COACH_COLUMNS = ['name', 'email', 'password', 'phone', 'address', 'qualifications',
                 'experience', 'bio', 'specialties', 'categories']
SPORTIF_COLUMNS = ['firstName', 'lastName', 'birthDate', 'category', 'team',
                   'position', 'height', 'weight']

MIN_PASSWORD_LENGTH = 6


def read_csv_upload(file, max_bytes):
    """
    Load an uploaded CSV into a DataFrame with stripped strings and NA for blanks.

    Raises:
        ValueError: if the file is missing, empty, too large or unreadable
    """
    if file is None or not file.filename:
        raise ValueError('No file uploaded')

    content = file.read()
    if not content:
        raise ValueError('The uploaded CSV file is empty')
    if len(content) > max_bytes:
        raise ValueError(f'File too large (max {max_bytes // (1024 * 1024)} MB)')

    try:
        try:
            df = pd.read_csv(io.BytesIO(content), encoding='utf-8', dtype=str)
        except UnicodeDecodeError:
            df = pd.read_csv(io.BytesIO(content), encoding='latin-1', dtype=str)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ValueError(f'Error parsing CSV: {str(e)}')

    if len(df) == 0:
        raise ValueError('The CSV file contains no data rows')

    current_app.logger.info(f"CSV loaded with {len(df)} rows and columns: {', '.join(df.columns)}")

    df.columns = [str(column).strip() for column in df.columns]
    # Every column is read as text
    df = df.apply(lambda x: x.str.strip())
    df = df.replace('', pd.NA)
    return df


def require_columns(df, columns):
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {', '.join(missing)}")


def _value(row, column):
    if column not in row or pd.isna(row[column]):
        return None
    return str(row[column]).strip()


def _float(row, column):
    value = _value(row, column)
    return float(value.replace(',', '.')) if value is not None else None


def csv_response(records, columns, filename):
    df = pd.DataFrame(records, columns=columns)
    response = make_response(df.to_csv(index=False))
    response.headers['Content-Type'] = 'text/csv; charset=utf-8'
    response.headers['Content-Disposition'] = f'attachment; filename={filename}'
    return response


# Exports

def export_users(club_id):
    users = User.query.filter_by(club_id=club_id).order_by(User.name).all()
    records = [
        {'name': u.name, 'email': u.email, 'role': u.role.value, 'password': ''}
        for u in users
    ]
    return csv_response(records, USER_COLUMNS, 'users.csv')


def export_coaches(club_id):
    coaches = Coach.query.join(User).filter(User.club_id == club_id).order_by(User.name).all()
    records = []
    for coach in coaches:
        record = {'name': coach.name, 'email': coach.user.email, 'password': ''}
        for column in COACH_COLUMNS[3:-1]:
            record[column] = getattr(coach, column)
        record['categories'] = ';'.join(c.name for c in coach.categories)
        records.append(record)
    return csv_response(records, COACH_COLUMNS, 'coaches.csv')


def export_sportifs(club_id, category_id=None):
    query = Sportif.query.join(Category).filter(Category.club_id == club_id)
    if category_id:
        query = query.filter(Sportif.category_id == category_id)
    records = [
        {
            'firstName': s.first_name,
            'lastName': s.last_name,
            'birthDate': s.birth_date.isoformat() if s.birth_date else None,
            'category': s.category.name,
            'team': s.team.name if s.team else None,
            'position': s.position,
            'height': s.height,
            'weight': s.weight,
        }
        for s in query.order_by(Sportif.last_name, Sportif.first_name).all()
    ]
    return csv_response(records, SPORTIF_COLUMNS, 'sportifs.csv')


# Imports

def _new_account(row, row_number, club_id, role, seen_emails, errors):
    name = _value(row, 'name')
    email = _value(row, 'email')
    password = _value(row, 'password')

    if not name or not email or not password:
        errors.append(f"Row {row_number}: name, email and password are required")
        return None
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Row {row_number}: password must be at least {MIN_PASSWORD_LENGTH} characters")
        return None
    if email.lower() in seen_emails or User.find_by_email(email):
        errors.append(f"Row {row_number}: a user with email {email} already exists")
        return None
    seen_emails.add(email.lower())

    user = User(name=name, email=email, role=role, club_id=club_id, email_verified=True)
    user.set_password(password)
    return user


def import_users(df, club_id):
    require_columns(df, ['name', 'email', 'password'])
    created, errors, seen = 0, [], set()

    for index, row in df.iterrows():
        row_number = index + 2
        try:
            role = parse_enum(UserRole, _value(row, 'role') or UserRole.SPORTIF.value)
        except ValueError as e:
            errors.append(f"Row {row_number}: {str(e)}")
            continue
        if role == UserRole.SUPER_ADMIN:
            errors.append(f"Row {row_number}: role super_admin cannot be imported")
            continue

        user = _new_account(row, row_number, club_id, role, seen, errors)
        if not user:
            continue
        if role == UserRole.COACH:
            user.coach_profile = Coach()
        db.session.add(user)
        created += 1

    db.session.commit()
    return created, errors


def import_coaches(df, club_id):
    require_columns(df, ['name', 'email', 'password'])
    categories = {c.name.lower(): c for c in Category.query.filter_by(club_id=club_id).all()}
    created, errors, seen = 0, [], set()

    for index, row in df.iterrows():
        row_number = index + 2
        user = _new_account(row, row_number, club_id, UserRole.COACH, seen, errors)
        if not user:
            continue

        coach = Coach()
        for column in COACH_COLUMNS[3:-1]:
            setattr(coach, column, _value(row, column))

        names = [n.strip() for n in (_value(row, 'categories') or '').split(';') if n.strip()]
        unknown = [n for n in names if n.lower() not in categories]
        if unknown:
            errors.append(f"Row {row_number}: unknown categories {', '.join(unknown)}")
            continue
        coach.categories = [categories[n.lower()] for n in names]

        user.coach_profile = coach
        db.session.add(user)
        created += 1

    db.session.commit()
    return created, errors


def import_sportifs(df, club_id):
    require_columns(df, ['firstName', 'lastName', 'birthDate', 'category'])
    categories = {c.name.lower(): c for c in Category.query.filter_by(club_id=club_id).all()}
    created, errors = 0, []

    for index, row in df.iterrows():
        row_number = index + 2
        first_name = _value(row, 'firstName')
        last_name = _value(row, 'lastName')
        if not first_name or not last_name:
            errors.append(f"Row {row_number}: firstName and lastName are required")
            continue

        category_name = _value(row, 'category')
        category = categories.get((category_name or '').lower())
        if not category:
            errors.append(f"Row {row_number}: category '{category_name}' not found")
            continue

        try:
            birth_date = parse_date(_value(row, 'birthDate'))
            height = _float(row, 'height')
            weight = _float(row, 'weight')
        except ValueError as e:
            errors.append(f"Row {row_number}: {str(e)}")
            continue

        team = None
        team_name = _value(row, 'team')
        if team_name:
            team = category.teams.filter_by(name=team_name).first()
            if not team:
                errors.append(f"Row {row_number}: team '{team_name}' not found in {category.name}")
                continue

        db.session.add(Sportif(
            first_name=first_name,
            last_name=last_name,
            birth_date=birth_date,
            category_id=category.id,
            team_id=team.id if team else None,
            position=_value(row, 'position'),
            height=height,
            weight=weight
        ))
        created += 1

    db.session.commit()
    return created, errors
