from app import db
from app.models import User, Memorial, Photo
from app.services.access_control import OwnerStatus

PLACEHOLDER_PHOTO = 'https://placehold.co/600x400.png'

SAMPLE_ACCOUNTS = {
    'sample-user-jane@example.com': 'sample-user-jane',
    'sample-user-john@example.com': 'sample-user-john',
}

SAMPLE_MEMORIALS = [
    {
        'id': 'jane-doe-dev-memorial',
        'owner_email': 'sample-user-jane@example.com',
        'deceased_name': 'Jane Doe (Sample)',
        'birth_date': '1950-01-01',
        'death_date': '2023-01-01',
        'life_summary': 'A life well lived, full of joy and kindness. Jane loved gardening and '
                        'spending time with her family.',
        'biography': 'Jane Doe was born in a small town and grew up to be a beacon of light in her '
                     'community. She dedicated her life to helping others and was known for her '
                     'infectious laughter and warm heart. Her passions included gardening, where she '
                     'found peace and joy, and spending cherished moments with her beloved family and '
                     'friends. She will be dearly missed by all who knew her.',
        'photos': [('A beautiful memory', PLACEHOLDER_PHOTO), ('Happy times', PLACEHOLDER_PHOTO)],
        'tributes': ['A wonderful person, deeply missed.', 'Her kindness touched so many.'],
        'stories': ['I remember when Jane helped me with... it showed her true character.',
                    'One funny story about Jane...'],
    },
    {
        'id': 'john-smith-dev-memorial',
        'owner_email': 'sample-user-john@example.com',
        'deceased_name': 'John Smith (Sample)',
        'birth_date': '1965-07-15',
        'death_date': '2024-03-10',
        'life_summary': 'John was an avid explorer and a loving father. He enjoyed hiking and '
                        'telling stories.',
        'biography': 'John Smith was a man of adventure and warmth. His love for the great outdoors '
                     'was matched only by his devotion to his family. Known for his captivating '
                     'stories and generous spirit, John left an indelible mark on everyone he met. He '
                     'found solace in nature, often hiking through mountains and forests, and shared '
                     'his passion with those around him. His legacy of curiosity and love will live on.',
        'photos': [('Adventure time', PLACEHOLDER_PHOTO)],
        'tributes': ['A true inspiration.', 'We will never forget his laughter.'],
        'stories': ['John once climbed a mountain just to see the sunrise...',
                    'He told the best campfire stories.'],
    },
]


def seed_samples():
    """Insert the sample accounts and memorials. Existing rows are left alone.

    Returns the number of memorials created.
    """
    users = {}
    for email, password in SAMPLE_ACCOUNTS.items():
        user = User.query.filter_by(email=email).first()
        if user is None:
            user = User(email=email, status=OwnerStatus.FREE.value)
            user.set_password(password)
            db.session.add(user)
        users[email] = user
    db.session.flush()

    created = 0
    for sample in SAMPLE_MEMORIALS:
        if db.session.get(Memorial, sample['id']) is not None:
            continue
        owner = users[sample['owner_email']]
        memorial = Memorial(
            id=sample['id'],
            owner_id=owner.id,
            owner_status=owner.owner_status.value,
            deceased_name=sample['deceased_name'],
            birth_date=sample['birth_date'],
            death_date=sample['death_date'],
            life_summary=sample['life_summary'],
            biography=sample['biography'],
            tributes=list(sample['tributes']),
            stories=list(sample['stories']),
        )
        for position, (caption, url) in enumerate(sample['photos']):
            memorial.photos.append(Photo(url=url, caption=caption, position=position))
        db.session.add(memorial)
        created += 1

    db.session.commit()
    return created
