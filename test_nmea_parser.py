# test_nmea_parser.py
from datetime import datetime, timezone

from nmea_parser import NMEAParser, PositionFix, estimated_accuracy_m

GGA = "$GPGGA,092750.000,5321.6802,N,00630.3372,W,1,08,1.03,61.7,M,55.2,M,,*76"
RMC = "$GPRMC,123519,A,4807.038,N,01131.000,E,022.4,084.4,230394,003.1,W*6A"


def test_parse_gga_updates_position_and_altitude():
    p = NMEAParser()

    # 代表的なGGA（緯度経度・高度を含む）
    fix = p.parse(GGA)
    assert isinstance(fix, PositionFix)

    # 53°21.6802' N = 53 + 21.6802/60
    assert abs(fix.latitude - (53 + 21.6802 / 60)) < 1e-6
    # 6°30.3372' W = -(6 + 30.3372/60)
    assert abs(fix.longitude - (-(6 + 30.3372 / 60))) < 1e-6

    assert fix.altitude == 61.7
    assert fix.hdop == 1.03
    assert fix.satellites == 8
    assert p.latitude == fix.latitude


def test_parse_rmc_gives_utc_timestamp():
    p = NMEAParser()
    fix = p.parse(RMC)
    assert fix is not None
    assert fix.timestamp == datetime(1994, 3, 23, 12, 35, 19, tzinfo=timezone.utc)
    assert abs(fix.latitude - (48 + 7.038 / 60)) < 1e-6
    assert abs(fix.longitude - (11 + 31.0 / 60)) < 1e-6


def test_same_second_rmc_is_reported_once():
    p = NMEAParser()
    assert p.parse(RMC) is not None
    assert p.parse(RMC) is None


def test_void_rmc_and_no_fix_gga_are_ignored():
    p = NMEAParser()
    assert p.parse("$GPRMC,123519,V,4807.038,N,01131.000,E,022.4,084.4,230394,003.1,W*7D") is None
    assert p.parse("$GPGGA,092750.000,5321.6802,N,00630.3372,W,0,00,,,M,,M,,*4A") is None
    assert p.latitude is None


def test_other_talkers_and_sentences():
    p = NMEAParser()
    assert p.parse(GGA.replace("$GPGGA", "$GNGGA")) is not None
    assert p.parse("$GPGSV,3,1,11,03,03,111,00,04,15,270,00,06,01,010,00,13,06,292,00*74") is None
    assert p.parse("garbage") is None
    assert p.parse("") is None


def test_malformed_numbers_do_not_raise():
    p = NMEAParser()
    assert p.parse("$GPGGA,092750.000,53xx.6802,N,00630.3372,W,1,08,1.03,61.7,M,55.2,M,,*76") is None
    assert p.parse("$GPGGA,092750.000,5321.6802,N,00630.3372,W,1,08,abc,61.7,M,55.2,M,,*76") is None


def test_fix_coordinate_and_accuracy():
    fix = NMEAParser().parse(GGA)
    assert fix.coordinate.latitude == fix.latitude
    assert abs(estimated_accuracy_m(fix.hdop) - 5.15) < 1e-9
    assert estimated_accuracy_m(2.0, uere_m=3.0) == 6.0
    assert estimated_accuracy_m(None) is None


def test_gga_time_uses_its_own_utc_time_with_rmc_date():
    p = NMEAParser()
    p.parse(RMC)  # 1994-03-23 12:35:19
    fix = p.parse("$GPGGA,123545.00,4807.038,N,01131.000,E,1,08,0.9,545.4,M,46.9,M,,*47")
    assert fix.timestamp == datetime(1994, 3, 23, 12, 35, 45, tzinfo=timezone.utc)


def test_gga_time_rolls_over_midnight():
    p = NMEAParser()
    p.parse("$GPRMC,235959,A,4807.038,N,01131.000,E,022.4,084.4,230394,003.1,W*6A")
    fix = p.parse("$GPGGA,000001.00,4807.038,N,01131.000,E,1,08,0.9,545.4,M,46.9,M,,*47")
    assert fix.timestamp == datetime(1994, 3, 24, 0, 0, 1, tzinfo=timezone.utc)


def test_gga_without_rmc_date_has_no_timestamp():
    fix = NMEAParser().parse(GGA)
    assert fix.timestamp is None
